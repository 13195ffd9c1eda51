"""Order history queries feeding the PnL core."""

from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from p2p_pnl.config import ORDER_PAGE_SIZE
from p2p_pnl.db.models import OrderRecord
from p2p_pnl.domain.models import Order


class OrderRepository:
    """Read access to stored orders, returned as domain Orders."""

    @staticmethod
    def fetch_page(
        session: Session,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Order]:
        """
        One page of order history, newest first.

        Args:
            session: SQLModel session
            offset: Rows to skip
            limit: Page size, defaults to ORDER_PAGE_SIZE

        Returns:
            Orders sorted by time descending, then order number
        """
        limit = ORDER_PAGE_SIZE if limit is None else limit
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if limit <= 0:
            raise ValueError(f"limit must be > 0, got {limit}")

        stmt = (
            select(OrderRecord)
            .order_by(OrderRecord.time.desc(), OrderRecord.order_no)
            .offset(offset)
            .limit(limit)
        )
        return [row.to_order() for row in session.exec(stmt).all()]

    @staticmethod
    def fetch_all(session: Session) -> List[Order]:
        """Full history, oldest first."""
        stmt = select(OrderRecord).order_by(OrderRecord.time, OrderRecord.order_no)
        return [row.to_order() for row in session.exec(stmt).all()]

    @staticmethod
    def count(session: Session) -> int:
        return session.exec(select(func.count()).select_from(OrderRecord)).one()

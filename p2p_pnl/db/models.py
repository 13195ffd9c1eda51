"""
SQLModel definitions for the order store.
Designed for SQLite locally, PostgreSQL in production.
"""

from decimal import Decimal
from typing import Optional
import uuid

from sqlmodel import SQLModel, Field

from p2p_pnl.domain.models import Order


class OrderRecord(SQLModel, table=True):
    """Stored P2P order, one row per exchange order number."""
    __tablename__ = "orders"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    # Exchange order number, unique per store
    order_no: str = Field(unique=True, index=True)

    side: str = Field()  # BUY or SELL
    fiat_amount: Optional[Decimal] = Field(default=None, max_digits=24, decimal_places=8)
    price: Optional[Decimal] = Field(default=None, max_digits=24, decimal_places=8)
    coin_amount: Decimal = Field(max_digits=24, decimal_places=8)
    counterparty: str = Field(default="", index=True)
    status: str = Field(index=True)

    # Raw "YYYY-MM-DD HH:MM:SS" string, sorts chronologically
    time: str = Field(index=True)

    @classmethod
    def from_order(cls, order: Order) -> "OrderRecord":
        return cls(
            order_no=order.order_no,
            side=order.side,
            fiat_amount=order.fiat_amount,
            price=order.price,
            coin_amount=order.coin_amount,
            counterparty=order.counterparty,
            status=order.status,
            time=order.time,
        )

    def to_order(self) -> Order:
        return Order(
            order_no=self.order_no,
            side=self.side,
            fiat_amount=Decimal(self.fiat_amount) if self.fiat_amount is not None else None,
            price=Decimal(self.price) if self.price is not None else None,
            coin_amount=Decimal(self.coin_amount),
            counterparty=self.counterparty,
            status=self.status,
            time=self.time,
        )

"""Idempotent import of parsed orders into the order store."""

import logging
from typing import List, Sequence, Tuple

from sqlmodel import Session, select

from p2p_pnl.db.models import OrderRecord
from p2p_pnl.domain.models import Order

logger = logging.getLogger(__name__)


class OrderImporter:
    """Handles idempotent import of orders."""

    @staticmethod
    def import_orders(
        session: Session,
        orders: Sequence[Order],
    ) -> Tuple[int, int, List[str]]:
        """
        Insert orders that are not stored yet.

        Idempotent rules:
        - Skip if the order number already exists in the store.
        - Skip duplicates within the same batch.

        Returns:
            (total_seen, newly_inserted, warnings)
        """
        warnings: List[str] = []
        newly_inserted = 0

        existing_ids = set(session.exec(select(OrderRecord.order_no)).all())
        seen_in_batch = set()

        for order in orders:
            order_no = (order.order_no or "").strip()
            if not order_no:
                warnings.append(f"Skipped order with missing order number at {order.time}")
                continue

            if order_no in seen_in_batch:
                warnings.append(f"Skipped duplicate in batch: {order_no}")
                continue
            seen_in_batch.add(order_no)

            if order_no in existing_ids:
                warnings.append(f"Skipped duplicate in store: {order_no}")
                continue

            session.add(OrderRecord.from_order(order))
            newly_inserted += 1
            existing_ids.add(order_no)

        if newly_inserted:
            session.commit()

        for warning in warnings:
            logger.info(warning)
        logger.debug("Imported %d of %d orders", newly_inserted, len(orders))

        return len(orders), newly_inserted, warnings

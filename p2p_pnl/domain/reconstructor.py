"""
Realized PnL reconstruction from executed orders.
Implements FIFO lot matching, partial closes, long/short flips and daily bucketing.
"""

import logging
from collections import deque
from decimal import Decimal
from typing import Deque, List, Optional, Sequence, Tuple

from p2p_pnl.domain.decimal_math import EPSILON, is_finite, money_context
from p2p_pnl.domain.models import (
    DailyBucket,
    DailyPoint,
    Lot,
    Order,
    ReplayResult,
    Side,
)
from p2p_pnl.domain.timeutil import parse_order_time

logger = logging.getLogger(__name__)


def ensure_orders(orders: Sequence[Order]) -> None:
    """Fail fast on structurally invalid input so callers can tell it from an empty result."""
    if not isinstance(orders, (list, tuple)):
        raise TypeError(
            f"orders must be a list of Order, got {type(orders).__name__}"
        )
    for idx, order in enumerate(orders):
        if not isinstance(order, Order):
            raise TypeError(
                f"orders[{idx}] must be an Order, got {type(order).__name__}"
            )


def order_fiat_amount(order: Order) -> Optional[Decimal]:
    """Fiat moved by an order, falling back to price x coin amount."""
    if is_finite(order.fiat_amount):
        return order.fiat_amount
    if is_finite(order.price) and is_finite(order.coin_amount):
        with money_context():
            return order.price * order.coin_amount
    return None


def order_no_key(order_no) -> Tuple:
    """Sort key for order numbers: digit strings compare numerically, before any others."""
    text = str(order_no).strip()
    if text.isascii() and text.isdigit():
        return (0, int(text), text)
    return (1, 0, text)


def sorted_completed(orders: Sequence[Order]) -> List[Tuple]:
    """
    Completed orders with parseable timestamps, oldest first.

    Ties on timestamp are broken by order number so the replay does not
    depend on input order.

    Returns:
        List of (timestamp, order) tuples
    """
    timed = []
    for order in orders:
        if not order.is_completed:
            continue
        ts = parse_order_time(order.time)
        if ts is None:
            logger.warning("Skipping order %s: unparseable time %r", order.order_no, order.time)
            continue
        timed.append((ts, order))
    timed.sort(key=lambda item: (item[0], order_no_key(item[1].order_no)))
    return timed


class PnLReconstructor:
    """Recomputes realized PnL from the full order history using FIFO matching."""

    @staticmethod
    def compute_realized_pnl(orders: Sequence[Order]) -> List[DailyPoint]:
        """
        Full recomputation of the daily PnL series.

        Args:
            orders: Order history in any order; non-completed orders are ignored

        Returns:
            One DailyPoint per touched calendar day, ascending by date
        """
        result = PnLReconstructor.replay(orders)
        return [
            DailyPoint.from_bucket(day, bucket)
            for day, bucket in sorted(result.buckets.items())
        ]

    @staticmethod
    def replay(orders: Sequence[Order]) -> ReplayResult:
        """
        Replay the history through a fresh inventory.

        Returns:
            ReplayResult with raw Decimal day buckets and the remaining lots
        """
        ensure_orders(orders)

        result = ReplayResult()
        inventory = result.inventory
        skipped = 0

        with money_context():
            for _, order in sorted_completed(orders):
                side = order.normalized_side
                if side not in (Side.BUY.value, Side.SELL.value):
                    logger.warning("Skipping order %s: unknown side %r", order.order_no, order.side)
                    skipped += 1
                    continue

                if not is_finite(order.coin_amount) or order.coin_amount <= 0:
                    logger.warning(
                        "Skipping order %s: non-positive coin amount %s",
                        order.order_no, order.coin_amount,
                    )
                    skipped += 1
                    continue

                fiat_amount = order_fiat_amount(order)
                if fiat_amount is None:
                    logger.warning("Skipping order %s: no finite fiat amount", order.order_no)
                    skipped += 1
                    continue

                bucket = result.buckets.setdefault(order.day_key, DailyBucket())

                if side == Side.BUY.value:
                    bucket.realized_revenue += PnLReconstructor._apply_buy(
                        inventory, order.coin_amount, fiat_amount
                    )
                    bucket.buy_total += fiat_amount
                else:
                    bucket.realized_revenue += PnLReconstructor._apply_sell(
                        inventory, order.coin_amount, fiat_amount
                    )
                    bucket.sell_total += fiat_amount

        logger.debug(
            "Replayed %d orders into %d days, %d skipped, %d open lots",
            len(orders), len(result.buckets), skipped, len(inventory),
        )
        return result

    @staticmethod
    def _apply_buy(inventory: Deque[Lot], quantity: Decimal, fiat: Decimal) -> Decimal:
        """Cover shorts at the head, then open a long lot with any remainder."""
        realized = Decimal(0)
        remaining_qty = quantity
        remaining_fiat = fiat

        while remaining_qty > 0 and inventory and inventory[0].is_short:
            lot = inventory[0]
            short_qty = abs(lot.quantity)
            matched = min(remaining_qty, short_qty)

            # Proceeds booked when the short was opened vs. cost to buy it back
            matched_proceeds = lot.fiat_basis * (matched / short_qty)
            matched_cost = remaining_fiat * (matched / remaining_qty)
            realized += matched_proceeds - matched_cost

            lot.quantity += matched
            lot.fiat_basis -= matched_proceeds
            if abs(lot.quantity) <= EPSILON:
                inventory.popleft()

            remaining_qty -= matched
            remaining_fiat -= matched_cost

        if remaining_qty > 0:
            inventory.append(Lot(quantity=remaining_qty, fiat_basis=remaining_fiat))

        return realized

    @staticmethod
    def _apply_sell(inventory: Deque[Lot], quantity: Decimal, fiat: Decimal) -> Decimal:
        """Close longs at the head, then open a short lot with any remainder."""
        realized = Decimal(0)
        remaining_qty = quantity
        remaining_fiat = fiat

        while remaining_qty > 0 and inventory and inventory[0].is_long:
            lot = inventory[0]
            matched = min(lot.quantity, remaining_qty)

            matched_cost = lot.fiat_basis * (matched / lot.quantity)
            matched_revenue = remaining_fiat * (matched / remaining_qty)
            realized += matched_revenue - matched_cost

            lot.quantity -= matched
            lot.fiat_basis -= matched_cost
            if lot.quantity <= EPSILON:
                inventory.popleft()

            remaining_qty -= matched
            remaining_fiat -= matched_revenue

        if remaining_qty > 0:
            # Realized PnL of the new short is deferred until it is covered
            inventory.append(Lot(quantity=-remaining_qty, fiat_basis=remaining_fiat))

        return realized

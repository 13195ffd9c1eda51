"""Cycle velocity: average holding time of FIFO-matched inventory."""

import logging
from collections import deque
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Deque, Dict, List, Optional, Sequence

from p2p_pnl.domain.decimal_math import EPSILON, is_finite, money_context
from p2p_pnl.domain.models import BuyLot, Order, Side
from p2p_pnl.domain.reconstructor import ensure_orders, sorted_completed
from p2p_pnl.domain.timeutil import local_now

logger = logging.getLogger(__name__)

VELOCITY_WINDOWS: Dict[str, timedelta] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}


class CycleVelocityCalculator:
    """Runs its own FIFO queue of buy lots, separate from the PnL replay."""

    @staticmethod
    def calculate_cycle_velocity(
        orders: Sequence[Order],
        window: str = "30d",
        now: Optional[datetime] = None,
    ) -> int:
        """
        Average minutes between a buy lot opening and the sell that consumes it.

        Args:
            orders: Order history; only completed orders inside the window count
            window: "7d", "30d" or "90d"
            now: Window end as a naive datetime in the report timezone
                (defaults to the current time there)

        Returns:
            Mean holding duration rounded to the nearest minute, 0 without matches
        """
        samples = CycleVelocityCalculator.holding_samples(orders, window, now)
        if not samples:
            return 0

        total_seconds = sum(Decimal(str(s.total_seconds())) for s in samples)
        with money_context():
            mean_minutes = total_seconds / len(samples) / 60
        return int(mean_minutes.quantize(Decimal(1), rounding=ROUND_HALF_UP))

    @staticmethod
    def holding_samples(
        orders: Sequence[Order],
        window: str = "30d",
        now: Optional[datetime] = None,
    ) -> List[timedelta]:
        """One duration sample per (sell, buy lot) match inside the window."""
        ensure_orders(orders)
        if window not in VELOCITY_WINDOWS:
            raise ValueError(
                f"Unknown velocity window {window!r}, expected one of {sorted(VELOCITY_WINDOWS)}"
            )

        end = now if now is not None else local_now()
        start = end - VELOCITY_WINDOWS[window]

        queue: Deque[BuyLot] = deque()
        samples: List[timedelta] = []

        with money_context():
            for ts, order in sorted_completed(orders):
                if ts < start or ts > end:
                    continue
                if not is_finite(order.coin_amount) or order.coin_amount <= 0:
                    continue

                side = order.normalized_side
                if side == Side.BUY.value:
                    queue.append(BuyLot(quantity=order.coin_amount, opened_at=ts))
                elif side == Side.SELL.value:
                    remaining = order.coin_amount
                    while remaining > 0 and queue:
                        lot = queue[0]
                        matched = min(remaining, lot.quantity)
                        samples.append(ts - lot.opened_at)

                        lot.quantity -= matched
                        remaining -= matched
                        if lot.quantity <= EPSILON:
                            queue.popleft()
                    # Sell quantity with no open buy lot is not tracked here

        logger.debug("Cycle velocity %s: %d samples", window, len(samples))
        return samples

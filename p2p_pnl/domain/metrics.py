"""Metrics and reporting calculations over the daily PnL series."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import pandas as pd

from p2p_pnl.domain.decimal_math import (
    ZERO,
    format_whole,
    money_context,
    quantize_money,
    safe_div,
)
from p2p_pnl.domain.models import DailyPoint, MonthSummary, Order, Side
from p2p_pnl.domain.reconstructor import ensure_orders, order_fiat_amount, sorted_completed
from p2p_pnl.domain.timeutil import local_today, parse_day

logger = logging.getLogger(__name__)

CHART_RANGES = {"7d": 7, "30d": 30, "90d": 90}

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


@dataclass(frozen=True)
class RevenueWindows:
    this_week: Decimal
    this_month: Decimal
    last_7_days: Decimal
    last_30_days: Decimal
    last_90_days: Decimal

    def as_display(self) -> Dict[str, str]:
        """Whole-number strings, no cents."""
        return {
            "thisWeek": format_whole(self.this_week),
            "thisMonth": format_whole(self.this_month),
            "last7Days": format_whole(self.last_7_days),
            "last30Days": format_whole(self.last_30_days),
            "last90Days": format_whole(self.last_90_days),
        }


@dataclass
class VolumeHeatmap:
    """Fiat volume by weekday (Mon=0) and hour."""
    side: str
    grid: List[List[Decimal]] = field(
        default_factory=lambda: [[ZERO] * 24 for _ in range(7)]
    )
    max_value: Decimal = Decimal(1)
    total_volume: Decimal = ZERO
    count: int = 0


@dataclass
class _MonthAccumulator:
    revenue: Decimal = ZERO
    total_buy: Decimal = ZERO
    total_sell: Decimal = ZERO
    sum_of_row_spreads: Decimal = ZERO
    rows_with_buy: int = 0


class MetricsCalculator:
    """Derived metrics over DailyPoint series and raw orders."""

    @staticmethod
    def aggregate_by_month(
        points: Sequence[DailyPoint],
        weighted: bool = True,
    ) -> List[MonthSummary]:
        """
        Reduce the daily series to per-month summaries.

        Months are keyed by calendar month index only, so the same month of
        different years is merged into one summary.

        Args:
            points: Output of PnLReconstructor.compute_realized_pnl
            weighted: Spread as (sell - buy) / buy of monthly totals when True,
                otherwise the mean of per-day spreads over days with buys

        Returns:
            MonthSummary list sorted by month index
        """
        by_month: Dict[int, _MonthAccumulator] = defaultdict(_MonthAccumulator)

        with money_context():
            for point in points:
                day = parse_day(point.date)
                if day is None:
                    logger.debug("Skipping point with invalid date %r", point.date)
                    continue
                acc = by_month[day.month - 1]
                acc.revenue += point.revenue
                acc.total_buy += point.buy
                acc.total_sell += point.sell
                if point.buy != 0:
                    acc.sum_of_row_spreads += (point.sell - point.buy) / point.buy
                    acc.rows_with_buy += 1

        summaries = []
        for month_index in sorted(by_month):
            acc = by_month[month_index]
            if weighted:
                spread = (
                    safe_div(acc.total_sell - acc.total_buy, acc.total_buy)
                    if acc.total_buy > 0 else ZERO
                )
            else:
                spread = safe_div(acc.sum_of_row_spreads, Decimal(acc.rows_with_buy))

            summaries.append(
                MonthSummary(
                    month_index=month_index,
                    revenue=acc.revenue,
                    total_buy=acc.total_buy,
                    total_sell=acc.total_sell,
                    avg_spread=quantize_money(spread),
                )
            )
        return summaries

    @staticmethod
    def calculate_revenue_for_range(
        points: Sequence[DailyPoint],
        start: str,
        end: str,
    ) -> Decimal:
        """
        Sum revenue for points dated within [start, end] inclusive.

        Dates are compared as fixed-width "YYYY-MM-DD" strings.
        """
        total = ZERO
        with money_context():
            for point in points:
                day = point.date[:10]
                if start <= day <= end:
                    total += point.revenue
        return total

    @staticmethod
    def total_revenue(points: Sequence[DailyPoint]) -> Decimal:
        with money_context():
            return sum((p.revenue for p in points), ZERO)

    @staticmethod
    def revenue_windows(
        points: Sequence[DailyPoint],
        today: Optional[date] = None,
    ) -> RevenueWindows:
        """Revenue for the current week/month and rolling 7/30/90-day windows."""
        today = today or local_today()
        end = today.isoformat()

        start_of_week = today - timedelta(days=today.weekday())
        start_of_month = today.replace(day=1)

        def since(start_day: date) -> Decimal:
            return MetricsCalculator.calculate_revenue_for_range(
                points, start_day.isoformat(), end
            )

        return RevenueWindows(
            this_week=since(start_of_week),
            this_month=since(start_of_month),
            last_7_days=since(today - timedelta(days=6)),
            last_30_days=since(today - timedelta(days=29)),
            last_90_days=since(today - timedelta(days=89)),
        )

    @staticmethod
    def filter_points_by_time_range(
        points: Sequence[DailyPoint],
        time_range: str = "90d",
    ) -> List[DailyPoint]:
        """
        Points within the last N days ending at the latest point's date.

        Unknown ranges fall back to 90 days.
        """
        if not points:
            return []
        days = CHART_RANGES.get(time_range, 90)

        reference = parse_day(points[-1].date) or local_today()
        start = reference - timedelta(days=days - 1)

        out = []
        for point in points:
            day = parse_day(point.date)
            if day is not None and start <= day <= reference:
                out.append(point)
        return out

    @staticmethod
    def get_volume_heatmap(
        orders: Sequence[Order],
        side: str = Side.BUY.value,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> VolumeHeatmap:
        """
        Completed-order fiat volume for one side, bucketed by weekday and hour.

        Args:
            orders: Order history
            side: "BUY" or "SELL"
            start, end: Optional inclusive bounds on the order timestamp
        """
        ensure_orders(orders)
        side = side.upper()
        heatmap = VolumeHeatmap(side=side)

        with money_context():
            for ts, order in sorted_completed(orders):
                if order.normalized_side != side:
                    continue
                if (start and ts < start) or (end and ts > end):
                    continue
                fiat = order_fiat_amount(order)
                if fiat is None:
                    continue
                heatmap.grid[ts.weekday()][ts.hour] += fiat
                heatmap.total_volume += fiat
                heatmap.count += 1

        for row in heatmap.grid:
            for value in row:
                if value > heatmap.max_value:
                    heatmap.max_value = value
        return heatmap

    @staticmethod
    def points_to_frame(points: Sequence[DailyPoint]) -> pd.DataFrame:
        """DataFrame with columns: date, buy, sell, revenue."""
        if not points:
            return pd.DataFrame(columns=["date", "buy", "sell", "revenue"])
        return pd.DataFrame([p.to_dict() for p in points])

    @staticmethod
    def get_equity_curve(points: Sequence[DailyPoint]) -> pd.DataFrame:
        """
        Build equity curve from daily realized revenue.

        Returns DataFrame with columns: date, revenue, cumulative_revenue, drawdown
        """
        if not points:
            return pd.DataFrame(
                columns=["date", "revenue", "cumulative_revenue", "drawdown"]
            )

        rows = []
        cumulative = ZERO
        peak = ZERO

        with money_context():
            for point in sorted(points, key=lambda p: p.date):
                cumulative += point.revenue
                peak = max(peak, cumulative)
                drawdown = cumulative - peak if peak > 0 else ZERO

                rows.append(
                    {
                        "date": point.date,
                        "revenue": float(point.revenue),
                        "cumulative_revenue": float(cumulative),
                        "drawdown": float(drawdown),
                    }
                )

        return pd.DataFrame(rows)

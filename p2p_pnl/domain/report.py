"""Chart payload assembled from an order-history snapshot."""

from typing import Dict, Sequence

from p2p_pnl.domain.metrics import MetricsCalculator
from p2p_pnl.domain.models import Order
from p2p_pnl.domain.reconstructor import PnLReconstructor


def build_chart_payload(orders: Sequence[Order], weighted: bool = True) -> Dict:
    """
    JSON-serializable ``{"chartData": [...], "monthlySpread": [...]}``.

    Each call recomputes everything from ``orders``; nothing is cached.
    """
    points = PnLReconstructor.compute_realized_pnl(orders)
    months = MetricsCalculator.aggregate_by_month(points, weighted=weighted)
    return {
        "chartData": [p.to_dict() for p in points],
        "monthlySpread": [m.to_dict() for m in months],
    }

"""Domain value objects."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Deque, Dict, Optional

from p2p_pnl.domain.decimal_math import ZERO, quantize_money, round_money, to_decimal

MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderStatus:
    """Known status strings. Anything else is carried through but ignored."""
    COMPLETED = "Completed"
    CANCELED = "Canceled"


@dataclass(frozen=True)
class Order:
    """An executed (or canceled) P2P order, immutable input to the engine."""
    order_no: str
    side: str  # BUY or SELL; other values are skipped by the engine
    fiat_amount: Optional[Decimal]  # cost for BUY, proceeds for SELL
    price: Optional[Decimal]
    coin_amount: Decimal
    counterparty: str
    status: str
    time: str  # "YYYY-MM-DD HH:MM:SS", date prefix must be fixed-width ISO

    def __post_init__(self):
        # Accept ints, floats and numeric strings; the engine only sees Decimal
        for name in ("fiat_amount", "price", "coin_amount"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @property
    def is_completed(self) -> bool:
        return (self.status or "").strip().lower() == OrderStatus.COMPLETED.lower()

    @property
    def normalized_side(self) -> str:
        return (self.side or "").strip().upper()

    @property
    def day_key(self) -> str:
        return self.time[:10]


@dataclass
class Lot:
    """Open FIFO lot. Positive quantity is long, negative is short."""
    quantity: Decimal
    fiat_basis: Decimal  # remaining cost (long) or remaining proceeds (short)

    @property
    def is_long(self) -> bool:
        return self.quantity > 0

    @property
    def is_short(self) -> bool:
        return self.quantity < 0


@dataclass
class BuyLot:
    """Open buy lot for holding-time matching."""
    quantity: Decimal
    opened_at: datetime


@dataclass
class DailyBucket:
    buy_total: Decimal = ZERO
    sell_total: Decimal = ZERO
    realized_revenue: Decimal = ZERO


@dataclass(frozen=True)
class DailyPoint:
    date: str  # YYYY-MM-DD
    buy: Decimal
    sell: Decimal
    revenue: Decimal

    @classmethod
    def from_bucket(cls, day: str, bucket: DailyBucket) -> "DailyPoint":
        return cls(
            date=day,
            buy=quantize_money(bucket.buy_total),
            sell=quantize_money(bucket.sell_total),
            revenue=quantize_money(bucket.realized_revenue),
        )

    def to_dict(self) -> Dict:
        return {
            "date": self.date,
            "buy": round_money(self.buy),
            "sell": round_money(self.sell),
            "revenue": round_money(self.revenue),
        }


@dataclass(frozen=True)
class MonthSummary:
    month_index: int  # 0-11, years are not distinguished
    revenue: Decimal
    total_buy: Decimal
    total_sell: Decimal
    avg_spread: Decimal  # fraction, 0.05 == 5%

    @property
    def month(self) -> str:
        return MONTH_NAMES[self.month_index]

    def to_dict(self) -> Dict:
        return {
            "month": self.month,
            "revenue": round_money(self.revenue),
            "avgSpread": float(self.avg_spread),
            "totalBuy": round_money(self.total_buy),
            "totalSell": round_money(self.total_sell),
        }


@dataclass
class ReplayResult:
    """Day buckets and the inventory left after replaying an order history."""
    buckets: Dict[str, DailyBucket] = field(default_factory=dict)
    inventory: Deque[Lot] = field(default_factory=deque)

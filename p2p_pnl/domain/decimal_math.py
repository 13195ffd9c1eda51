"""
Decimal arithmetic helpers for money and quantity math.

All cost-basis and realized-PnL computations run inside ``money_context()``
so repeated proportional allocation never touches binary floats. Output
values are rounded half-away-from-zero.
"""

import re
from contextlib import contextmanager
from decimal import (
    Context,
    Decimal,
    InvalidOperation,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    localcontext,
)
from typing import Optional, Union

Number = Union[Decimal, int, float, str]

MONEY_CONTEXT = Context(prec=34, rounding=ROUND_HALF_EVEN)

# Lots with an absolute quantity at or below this are treated as closed
EPSILON = Decimal("1e-12")

ZERO = Decimal(0)
CENT = Decimal("0.01")
WHOLE = Decimal(1)

THOUSANDS_RE = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$")


@contextmanager
def money_context():
    """Run a block of Decimal operators under the money context."""
    with localcontext(MONEY_CONTEXT) as ctx:
        yield ctx


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """
    Convert a wire/user value to Decimal.

    Floats go through ``repr`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion. ``None`` and empty strings map to ``None``.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, str):
        text = value.strip()
        if "," in text:
            # Only real thousands groups; "1000,50" is ambiguous
            if not THOUSANDS_RE.match(text):
                raise ValueError(f"Ambiguous comma in numeric value: {value!r}")
            text = text.replace(",", "")
        if not text:
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Not a numeric value: {value!r}")
    raise ValueError(f"Not a numeric value: {value!r}")


def is_finite(value: Optional[Decimal]) -> bool:
    return value is not None and value.is_finite()


def safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, yielding zero for a zero denominator."""
    if denominator == 0:
        return ZERO
    with money_context():
        return numerator / denominator


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero. Never returns negative zero."""
    rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)
    return rounded


def round_money(value: Decimal) -> float:
    """Two-decimal float for presentation and JSON output."""
    return float(quantize_money(value))


def format_whole(value: Decimal) -> str:
    """Integer string (no cents), half away from zero."""
    rounded = value.quantize(WHOLE, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)  # avoid "-0"
    return str(rounded)

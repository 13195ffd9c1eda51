"""Timestamp parsing for order ``Time`` strings."""

from datetime import date, datetime
from typing import Optional

import pytz

from p2p_pnl.config import REPORT_TIMEZONE

# Common export formats, tried after ISO 8601
TIMESTAMP_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
]


def report_tz(report_timezone: Optional[str] = None):
    return pytz.timezone(report_timezone or REPORT_TIMEZONE)


def parse_order_time(ts_str: str, report_timezone: Optional[str] = None) -> Optional[datetime]:
    """
    Parse an order timestamp into a naive datetime in the report timezone.

    Naive strings are taken as already local to the report timezone; strings
    with an offset (e.g. "2025-11-16 06:20:29.325+00") are converted to it.

    Returns:
        Naive datetime, or None when the string cannot be parsed
    """
    if not isinstance(ts_str, str):
        return None
    text = ts_str.strip()
    if not text:
        return None

    dt = None
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in TIMESTAMP_FORMATS:
            try:
                dt = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if dt is None:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(report_tz(report_timezone)).replace(tzinfo=None)
    return dt


def parse_day(day_str: str) -> Optional[date]:
    """Parse the ``YYYY-MM-DD`` prefix of a date string."""
    try:
        return datetime.strptime(day_str[:10], "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def local_now(report_timezone: Optional[str] = None) -> datetime:
    """Current wall-clock time in the report timezone, naive."""
    return datetime.now(report_tz(report_timezone)).replace(tzinfo=None)


def local_today(report_timezone: Optional[str] = None) -> date:
    return local_now(report_timezone).date()

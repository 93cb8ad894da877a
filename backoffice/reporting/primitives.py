"""
Aggregation Primitives

Small total functions shared by the report pipeline. None of them raise on
malformed input: every coercion has a numeric or string fallback so a report
always renders.
"""

import math
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

MS_PER_DAY = 24 * 60 * 60 * 1000

STATUS_DONE = ("done", "completed", "paid")
STATUS_PENDING = ("pending", "processing")
STATUS_CANCELLED = ("cancelled", "canceled")


class OrderStatus(str, Enum):
    """Normalized order status"""
    DONE = "done"
    PENDING = "pending"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


def safe_num(value: Any, fallback: float = 0.0) -> float:
    """
    Coerce a value to a finite float.

    Numbers, numeric strings and booleans are converted; anything else, and
    any NaN or infinite result, yields ``fallback``.
    """
    if value is None:
        return fallback
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        try:
            number = float(text)
        except ValueError:
            return fallback
    else:
        return fallback
    return number if math.isfinite(number) else fallback


def to_millis(value: Any) -> Optional[int]:
    """
    Normalize a timestamp to epoch milliseconds.

    Accepts objects exposing ``to_millis()``, datetimes (naive values are
    local time), dates (local midnight), epoch-millisecond numbers and
    ISO-8601 strings. Returns None for anything missing or unparseable;
    zero is treated as missing.
    """
    if value is None or isinstance(value, bool):
        return None

    to_ms = getattr(value, "to_millis", None)
    if callable(to_ms):
        return to_millis(to_ms())

    if isinstance(value, datetime):
        return round(value.timestamp() * 1000)
    if isinstance(value, date):
        return round(datetime.combine(value, time.min).timestamp() * 1000)
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        if not math.isfinite(number) or number == 0:
            return None
        return int(number)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return round(parsed.timestamp() * 1000)
    return None


def normalize_status(raw: Any) -> OrderStatus:
    """Map a raw status spelling onto the closed OrderStatus set."""
    value = str(raw or "").strip().lower()
    if value in STATUS_DONE:
        return OrderStatus.DONE
    if value in STATUS_PENDING:
        return OrderStatus.PENDING
    if value in STATUS_CANCELLED:
        return OrderStatus.CANCELLED
    return OrderStatus.UNKNOWN


def format_lkr(amount: Any) -> str:
    """Format an amount as Sri Lankan rupees, e.g. ``Rs. 12,500.5``."""
    number = safe_num(amount, 0.0)
    text = f"{number:,.3f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return f"Rs. {text}"


def local_datetime(ms: int) -> datetime:
    """Epoch milliseconds as a naive local datetime."""
    return datetime.fromtimestamp(ms / 1000)


def day_key(ms: int) -> str:
    """Local calendar day (YYYY-MM-DD) containing ``ms``."""
    return local_datetime(ms).strftime("%Y-%m-%d")


def start_of_day_ms(ms: int) -> int:
    """00:00:00.000 local time of the day containing ``ms``."""
    start = datetime.combine(local_datetime(ms).date(), time.min)
    return round(start.timestamp() * 1000)


def end_of_day_ms(ms: int) -> int:
    """23:59:59.999 local time of the day containing ``ms``."""
    end = datetime.combine(local_datetime(ms).date(), time(23, 59, 59, 999000))
    return round(end.timestamp() * 1000)


def date_start_ms(day: date) -> int:
    """00:00:00.000 local time of a calendar date."""
    return round(datetime.combine(day, time.min).timestamp() * 1000)


def date_end_ms(day: date) -> int:
    """23:59:59.999 local time of a calendar date."""
    return round(datetime.combine(day, time(23, 59, 59, 999000)).timestamp() * 1000)

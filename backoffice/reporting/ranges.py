"""
Report Range Selection

Turns a preset (last 7 days, last 30 days, custom dates) into an inclusive
millisecond interval anchored at local-day boundaries.
"""

import time as _time
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Union

from .primitives import date_end_ms, date_start_ms, local_datetime

DateInput = Union[str, date, None]


class RangePreset(str, Enum):
    """Report range presets"""
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    CUSTOM = "custom"


PRESET_DAYS = {
    RangePreset.LAST_7_DAYS: 7,
    RangePreset.LAST_30_DAYS: 30,
}


class InvalidRangeError(ValueError):
    """Raised when a range cannot be resolved from the given inputs"""


@dataclass(frozen=True)
class DateRange:
    """Inclusive interval [from_ms, to_ms] in epoch milliseconds"""
    from_ms: int
    to_ms: int

    @property
    def first_day(self) -> date:
        return local_datetime(self.from_ms).date()

    @property
    def last_day(self) -> date:
        return local_datetime(self.to_ms).date()

    def contains(self, ms: int) -> bool:
        return self.from_ms <= ms <= self.to_ms

    def days(self) -> List[date]:
        """Every calendar day in the range, ascending."""
        days = []
        current = self.first_day
        while current <= self.last_day:
            days.append(current)
            current += timedelta(days=1)
        return days


def _parse_date(value: DateInput, field: str) -> date:
    if isinstance(value, date):
        return value
    if not value or not str(value).strip():
        raise InvalidRangeError(f"'{field}' is required for a custom range")
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise InvalidRangeError(f"'{field}' must be a YYYY-MM-DD date") from e


def resolve_range(
    preset: Union[RangePreset, str] = RangePreset.LAST_7_DAYS,
    date_from: DateInput = None,
    date_to: DateInput = None,
    now_ms: Optional[int] = None,
) -> DateRange:
    """
    Resolve a preset into a concrete DateRange.

    For ``7d``/``30d`` the window ends at the end of today and starts at the
    beginning of the day N-1 days earlier. For ``custom`` both dates are
    required; they are ordered so the earlier date always opens the range.

    Raises:
        InvalidRangeError: unknown preset or missing/malformed custom dates
    """
    try:
        preset = RangePreset(preset)
    except ValueError as e:
        raise InvalidRangeError(f"Unknown range preset: {preset!r}") from e

    if preset is RangePreset.CUSTOM:
        first = _parse_date(date_from, "from")
        last = _parse_date(date_to, "to")
        if first > last:
            first, last = last, first
        return DateRange(from_ms=date_start_ms(first), to_ms=date_end_ms(last))

    if now_ms is None:
        now_ms = int(_time.time() * 1000)

    today = local_datetime(now_ms).date()
    first = today - timedelta(days=PRESET_DAYS[preset] - 1)
    return DateRange(from_ms=date_start_ms(first), to_ms=date_end_ms(today))

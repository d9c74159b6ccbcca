"""
Time Range Resolver
Inclusive UTC windows for report periods and explicit date ranges
"""

import calendar
import re
from typing import Dict, Optional, Union
from dataclasses import dataclass
from datetime import datetime, date, time, timedelta, timezone


UTC = timezone.utc

# Last representable millisecond before the next boundary
_END_OFFSET = timedelta(milliseconds=1)

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Boundary = Union[datetime, date, str]


class InvalidRangeError(ValueError):
    """Raised when a window's lower bound is after its upper bound or cannot be parsed"""


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_instant(value: datetime) -> str:
    """ISO8601 with millisecond precision and a Z suffix"""
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive-inclusive UTC window, matching the backend's filter semantics"""
    from_: datetime
    to: datetime

    def __post_init__(self):
        object.__setattr__(self, "from_", _as_utc(self.from_))
        object.__setattr__(self, "to", _as_utc(self.to))
        if self.from_ > self.to:
            raise InvalidRangeError(
                f"Window start {format_instant(self.from_)} is after end {format_instant(self.to)}"
            )

    def contains(self, instant: datetime) -> bool:
        return self.from_ <= _as_utc(instant) <= self.to

    def to_query_params(self) -> Dict[str, str]:
        """Backend query parameters for this window"""
        return {"from_datetime": format_instant(self.from_), "to_datetime": format_instant(self.to)}

    def to_dict(self) -> Dict[str, str]:
        return {"from": format_instant(self.from_), "to": format_instant(self.to)}


def resolve(period: str, now: Optional[datetime] = None) -> TimeWindow:
    """
    Resolve a named period to the UTC window containing ``now``.

    Args:
        period: "day", "week" (ISO week, Monday start) or "month"
        now: Reference instant; naive values are read as UTC. Defaults to now.

    Returns:
        TimeWindow from the period's first instant to its end: the last
        millisecond for day and week, the last whole second (23:59:59) for month
    """
    now = _as_utc(now or datetime.now(UTC))
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "day":
        start = day_start
        end = start + timedelta(days=1) - _END_OFFSET
    elif period == "week":
        start = day_start - timedelta(days=now.weekday())
        end = start + timedelta(days=7) - _END_OFFSET
    elif period == "month":
        start = day_start.replace(day=1)
        days_in_month = calendar.monthrange(start.year, start.month)[1]
        end = start + timedelta(days=days_in_month) - timedelta(seconds=1)
    else:
        raise InvalidRangeError(f"Unknown period: {period!r}")

    return TimeWindow(start, end)


def normalize_boundary(value: Boundary, end: bool = False) -> datetime:
    """
    Normalize one window boundary to a UTC datetime.

    Date-only values (``YYYY-MM-DD`` strings or ``date`` objects) expand to
    T00:00:00Z as a lower bound and T23:59:59Z as an upper bound.
    """
    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, time(23, 59, 59) if end else time(0, 0, 0), tzinfo=UTC)

    if isinstance(value, str):
        text = value.strip()
        if _DATE_ONLY.match(text):
            text = f"{text}T23:59:59Z" if end else f"{text}T00:00:00Z"
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _as_utc(datetime.fromisoformat(text))
        except ValueError as e:
            raise InvalidRangeError(f"Cannot parse window boundary {value!r}") from e

    raise InvalidRangeError(f"Unsupported window boundary type: {type(value).__name__}")


def from_explicit(from_: Boundary, to: Boundary) -> TimeWindow:
    """Build a window from caller-supplied bounds, failing when from_ > to"""
    return TimeWindow(normalize_boundary(from_, end=False), normalize_boundary(to, end=True))

"""Time-window selectors for scoping log queries and statistics.

Selectors (date, hour, ISO week, month) are interpreted in the caller's
timezone; explicit ISO-8601 bounds without an offset are read in that same
timezone. Windows are half-open: ``since <= ts < until``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo

from .models import LogEntry

_WEEK_RE = re.compile(r"^(?P<y>\d{4})-W(?P<w>\d{2})$")
_MONTH_RE = re.compile(r"^(?P<y>\d{4})-(?P<m>\d{2})$")
_HOUR_RE = re.compile(r"^(?P<d>\d{4}-\d{2}-\d{2})T(?P<h>\d{2})$")


def to_epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


@dataclass(frozen=True, slots=True)
class TimeWindow:
    since_ms: int | None = None
    until_ms: int | None = None

    def __post_init__(self) -> None:
        if self.since_ms is not None and self.until_ms is not None and self.since_ms >= self.until_ms:
            raise ValueError("since must be < until")

    @classmethod
    def from_datetimes(cls, since: datetime | None, until: datetime | None) -> TimeWindow:
        return cls(
            since_ms=to_epoch_ms(since) if since is not None else None,
            until_ms=to_epoch_ms(until) if until is not None else None,
        )

    @property
    def unbounded(self) -> bool:
        return self.since_ms is None and self.until_ms is None

    def contains(self, timestamp_ms: int) -> bool:
        if self.since_ms is not None and timestamp_ms < self.since_ms:
            return False
        if self.until_ms is not None and timestamp_ms >= self.until_ms:
            return False
        return True

    def apply(self, entries: list[LogEntry]) -> list[LogEntry]:
        if self.unbounded:
            return entries
        return [e for e in entries if self.contains(e.timestamp)]


def _local_midnight(d: date, tz: tzinfo) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=tz)


def parse_iso_dt(s: str, *, tz: tzinfo = UTC) -> datetime:
    """Parse ISO8601 datetime. If the offset is missing, read it in ``tz``."""
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt


def range_for_date(s: str, *, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    start = _local_midnight(date.fromisoformat(s), tz)
    return start, start + timedelta(days=1)


def range_for_hour(s: str, *, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    m = _HOUR_RE.match(s)
    if not m:
        raise ValueError("hour must look like YYYY-MM-DDTHH (e.g., 2025-12-29T10)")
    d = date.fromisoformat(m.group("d"))
    start = datetime(d.year, d.month, d.day, int(m.group("h")), tzinfo=tz)
    return start, start + timedelta(hours=1)


def range_for_week(s: str, *, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    m = _WEEK_RE.match(s)
    if not m:
        raise ValueError("week must look like YYYY-Www (e.g., 2025-W52)")
    start = _local_midnight(date.fromisocalendar(int(m.group("y")), int(m.group("w")), 1), tz)
    return start, start + timedelta(days=7)


def range_for_month(s: str, *, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    m = _MONTH_RE.match(s)
    if not m:
        raise ValueError("month must look like YYYY-MM (e.g., 2025-12)")
    y = int(m.group("y"))
    mo = int(m.group("m"))
    start = datetime(y, mo, 1, tzinfo=tz)
    end = datetime(y + 1, 1, 1, tzinfo=tz) if mo == 12 else datetime(y, mo + 1, 1, tzinfo=tz)
    return start, end


def resolve_time_window(
    *,
    since: str | None = None,
    until: str | None = None,
    date_: str | None = None,
    hour: str | None = None,
    week: str | None = None,
    month: str | None = None,
    tz: tzinfo = UTC,
) -> TimeWindow:
    """Resolve a window; selectors take precedence over explicit bounds."""
    if date_:
        return TimeWindow.from_datetimes(*range_for_date(date_, tz=tz))
    if hour:
        return TimeWindow.from_datetimes(*range_for_hour(hour, tz=tz))
    if week:
        return TimeWindow.from_datetimes(*range_for_week(week, tz=tz))
    if month:
        return TimeWindow.from_datetimes(*range_for_month(month, tz=tz))

    s = parse_iso_dt(since, tz=tz) if since else None
    u = parse_iso_dt(until, tz=tz) if until else None
    return TimeWindow.from_datetimes(s, u)

"""On-demand statistics over a sequence of log entries.

Every function here is pure and linear in the number of entries; callers pass
a snapshot, never the live store.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo

from .models import Category, LogEntry, PresencePayload, VoicePayload, VoiceTransition

HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7
MS_PER_MINUTE = 60_000
DEFAULT_TOP_ACTIVITIES = 10


@dataclass(frozen=True, slots=True)
class StatisticsReport:
    total_entries: int
    unique_subjects: int
    category_counts: dict[Category, int]
    hour_counts: list[int]  # index = local hour 0..23
    busiest_hour: int | None  # None when there are no entries
    heatmap: dict[tuple[int, int], int]  # (day_of_week, hour) -> count; Sunday = 0
    total_voice_minutes: float
    top_activities: list[tuple[str, int]]


def _local_dt(timestamp_ms: int, tz: tzinfo | None) -> datetime:
    # tz=None means host local time
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz)


def category_counts(entries: Iterable[LogEntry]) -> dict[Category, int]:
    counts = dict.fromkeys(Category, 0)
    for e in entries:
        counts[e.category] += 1
    return counts


def hour_histogram(entries: Iterable[LogEntry], *, tz: tzinfo | None = None) -> list[int]:
    buckets = [0] * HOURS_PER_DAY
    for e in entries:
        buckets[_local_dt(e.timestamp, tz).hour] += 1
    return buckets


def busiest_hour(hour_counts: Sequence[int]) -> int | None:
    """Hour with the highest count; ties go to the lowest hour."""
    best: int | None = None
    for hour, count in enumerate(hour_counts):
        if count > 0 and (best is None or count > hour_counts[best]):
            best = hour
    return best


def day_hour_heatmap(
    entries: Iterable[LogEntry], *, tz: tzinfo | None = None
) -> dict[tuple[int, int], int]:
    heat: Counter[tuple[int, int]] = Counter()
    for e in entries:
        dt = _local_dt(e.timestamp, tz)
        heat[(dt.isoweekday() % DAYS_PER_WEEK, dt.hour)] += 1
    return dict(heat)


def voice_minutes(entries: Iterable[LogEntry]) -> float:
    """Approximate time spent in voice.

    Over the scope's voice entries in chronological order, at most one join
    is open at a time: a join opens it (replacing any unmatched open join), a
    leave closes it and adds its length. Moves neither open nor close. A leave
    without an open join adds nothing. Scope the entries to one subject for a
    per-subject figure.
    """
    voice = sorted(
        (e for e in entries if isinstance(e.payload, VoicePayload)),
        key=lambda e: e.timestamp,
    )
    open_join: int | None = None
    total_ms = 0
    for e in voice:
        transition = e.payload.transition
        if transition is VoiceTransition.JOIN:
            open_join = e.timestamp
        elif transition is VoiceTransition.LEAVE and open_join is not None:
            total_ms += e.timestamp - open_join
            open_join = None
    return total_ms / MS_PER_MINUTE


def top_activities(
    entries: Iterable[LogEntry], *, limit: int = DEFAULT_TOP_ACTIVITIES
) -> list[tuple[str, int]]:
    counts: Counter[str] = Counter()
    for e in entries:
        if isinstance(e.payload, PresencePayload):
            counts.update(a.name for a in e.payload.activities)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]


def compute_statistics(
    entries: Sequence[LogEntry],
    *,
    tz: tzinfo | None = None,
    top_limit: int = DEFAULT_TOP_ACTIVITIES,
) -> StatisticsReport:
    hours = hour_histogram(entries, tz=tz)
    return StatisticsReport(
        total_entries=len(entries),
        unique_subjects=len({e.subject_id for e in entries}),
        category_counts=category_counts(entries),
        hour_counts=hours,
        busiest_hour=busiest_hour(hours),
        heatmap=day_hour_heatmap(entries, tz=tz),
        total_voice_minutes=voice_minutes(entries),
        top_activities=top_activities(entries, limit=top_limit),
    )

"""Bounded, insertion-ordered activity log."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .models import LogEntry

DEFAULT_CAPACITY = 1000


class LogStore:
    """FIFO buffer of log entries; the oldest entry is evicted at capacity."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def extend(self, entries: Iterable[LogEntry]) -> None:
        self._entries.extend(entries)

    def query_all(self) -> list[LogEntry]:
        """Return a copy of all entries, oldest first."""
        return list(self._entries)

    def query_by_subject(self, subject_id: str) -> list[LogEntry]:
        return [e for e in self._entries if e.subject_id == subject_id]

    def last_timestamp(self) -> int | None:
        return self._entries[-1].timestamp if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def logged_subjects(self) -> dict[str, str]:
        """Subject ids with entries, in order of first entry, mapped to their latest display name."""
        names: dict[str, str] = {}
        for e in self._entries:
            names[e.subject_id] = e.display_name
        return names


def matches_search(entry: LogEntry, term: str) -> bool:
    """Case-insensitive display-name substring, or exact subject id."""
    return entry.subject_id == term or term.casefold() in entry.display_name.casefold()

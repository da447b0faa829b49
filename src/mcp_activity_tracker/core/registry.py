"""Which subjects are admitted into the pipeline."""

from __future__ import annotations


class SubscriptionRegistry:
    def __init__(self, *, track_all: bool = False) -> None:
        self.track_all = track_all
        self._tracked: set[str] = set()

    def track(self, subject_id: str) -> None:
        self._tracked.add(subject_id)

    def untrack(self, subject_id: str) -> None:
        self._tracked.discard(subject_id)

    def is_tracked(self, subject_id: str) -> bool:
        return self.track_all or subject_id in self._tracked

    def list_tracked(self) -> set[str]:
        return set(self._tracked)

    def set_track_all(self, enabled: bool) -> None:
        self.track_all = enabled

    def clear(self) -> None:
        """Forget explicitly tracked ids; the track-all flag is left as configured."""
        self._tracked.clear()

"""Bounded window of recently seen message ids."""

from __future__ import annotations


class Deduplicator:
    """Reject message ids that were already processed.

    Trimming keeps the most recently *inserted* ids; re-observing an id does
    not refresh its position.
    """

    def __init__(self, *, soft_cap: int = 1000, retain: int = 500) -> None:
        if retain < 1 or retain > soft_cap:
            raise ValueError("retain must be in [1, soft_cap]")
        self.soft_cap = soft_cap
        self.retain = retain
        self._seen: dict[str, None] = {}  # insertion-ordered set

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def observe(self, message_id: str) -> bool:
        """Return True the first time an id is seen, False afterwards."""
        if message_id in self._seen:
            return False
        self._seen[message_id] = None
        if len(self._seen) > self.soft_cap:
            keep = list(self._seen)[-self.retain :]
            self._seen = dict.fromkeys(keep)
        return True

    def reset(self) -> None:
        self._seen.clear()

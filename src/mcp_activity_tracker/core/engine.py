"""Tracker engine.

Owns the subscription registry, per-subject state, dedup window and log store,
and runs every ingestion step under one lock so transition detection sees a
consistent view. Reads (logs, statistics, exports) copy the log under the
lock and do their work outside it.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import tzinfo
from typing import Any

from .collaborators import DictNameResolver, LoggingNotificationSink, NameResolver, NotificationSink
from .config import TrackerConfig
from .dedup import Deduplicator
from .export import render_text, status_summary, voice_summary
from .log_store import LogStore, matches_search
from .models import LogEntry, MessagePayload, StatusPayload, VoicePayload
from .normalize import SourceKind, normalize
from .persistence import StateStore, dump_logs, dump_tracked, load_logs, load_tracked
from .registry import SubscriptionRegistry
from .state import SubjectStateTracker, SubjectTrackingState
from .stats import DEFAULT_TOP_ACTIVITIES, StatisticsReport, compute_statistics
from .time_window import TimeWindow

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class TrackerEngine:
    def __init__(
        self,
        cfg: TrackerConfig | None = None,
        *,
        resolver: NameResolver | None = None,
        notifier: NotificationSink | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.cfg = cfg or TrackerConfig()
        self.resolver: NameResolver = resolver or DictNameResolver()
        self.notifier: NotificationSink = notifier or LoggingNotificationSink()
        self._clock = clock or _now_ms

        self._lock = threading.Lock()
        self._registry = SubscriptionRegistry(track_all=self.cfg.track_all)
        self._tracker = SubjectStateTracker()
        self._dedup = Deduplicator(soft_cap=self.cfg.dedup_soft_cap, retain=self.cfg.dedup_retain)
        self._store = LogStore(self.cfg.log_capacity)
        self._last_ts = 0

    # -- ingestion -------------------------------------------------------

    def ingest(self, kind: SourceKind, raw: Mapping[str, Any]) -> list[LogEntry]:
        """Run one raw event through the pipeline; return the entries appended."""
        with self._lock:
            # Entry timestamps never go backwards, even if the wall clock does.
            now = max(self._clock(), self._last_ts)
            self._last_ts = now

            candidates = normalize(
                kind,
                raw,
                resolver=self.resolver,
                now_ms=now,
                admit=self._registry.is_tracked,
            )

            accepted: list[LogEntry] = []
            for candidate in candidates:
                payload = candidate.entry.payload
                if isinstance(payload, MessagePayload) and payload.message_id is not None:
                    if not self._dedup.observe(payload.message_id):
                        logger.debug("Dropping redelivered message %s", payload.message_id)
                        continue
                if not self._tracker.accept(candidate):
                    continue
                self._store.append(candidate.entry)
                accepted.append(candidate.entry)

        for entry in accepted:
            logger.debug("Logged %s for %s", entry.category.value, entry.display_name)
        self._dispatch_notifications(accepted)
        return accepted

    def ingest_presence(self, raw: Mapping[str, Any]) -> list[LogEntry]:
        return self.ingest(SourceKind.PRESENCE, raw)

    def ingest_voice_states(self, raw: Mapping[str, Any]) -> list[LogEntry]:
        return self.ingest(SourceKind.VOICE, raw)

    def ingest_message(self, raw: Mapping[str, Any]) -> list[LogEntry]:
        return self.ingest(SourceKind.MESSAGE, raw)

    def _dispatch_notifications(self, entries: list[LogEntry]) -> None:
        for entry in entries:
            payload = entry.payload
            if isinstance(payload, StatusPayload) and self.cfg.notify_status:
                summary = status_summary(entry, payload)
            elif isinstance(payload, VoicePayload) and self.cfg.notify_voice:
                summary = voice_summary(entry, payload)
            else:
                continue
            try:
                self.notifier.notify(
                    summary, subject_id=entry.subject_id, display_name=entry.display_name
                )
            except Exception as e:
                logger.warning("Notification sink failed for %s: %s", entry.subject_id, e)

    # -- subscriptions ---------------------------------------------------

    def track(self, subject_id: str) -> None:
        with self._lock:
            self._registry.track(subject_id)
        logger.info("Now tracking subject %s", subject_id)

    def untrack(self, subject_id: str) -> None:
        with self._lock:
            self._registry.untrack(subject_id)
        logger.info("Stopped tracking subject %s", subject_id)

    def is_tracked(self, subject_id: str) -> bool:
        with self._lock:
            return self._registry.is_tracked(subject_id)

    def list_tracked(self) -> set[str]:
        with self._lock:
            return self._registry.list_tracked()

    def set_track_all(self, enabled: bool) -> None:
        with self._lock:
            self._registry.set_track_all(enabled)
            self.cfg = replace(self.cfg, track_all=enabled)

    @property
    def track_all(self) -> bool:
        return self._registry.track_all

    # -- reads -----------------------------------------------------------

    def _snapshot_entries(self, subject_id: str | None = None) -> list[LogEntry]:
        with self._lock:
            if subject_id is None:
                return self._store.query_all()
            return self._store.query_by_subject(subject_id)

    def get_logs(
        self,
        subject_id: str | None = None,
        *,
        window: TimeWindow | None = None,
        search: str | None = None,
    ) -> list[LogEntry]:
        """Entries in insertion order (oldest first).

        ``search`` keeps entries whose display name contains the term
        (case-insensitive) or whose subject id equals it.
        """
        entries = self._snapshot_entries(subject_id)
        if window is not None:
            entries = window.apply(entries)
        if search:
            entries = [e for e in entries if matches_search(e, search)]
        return entries

    def logged_subjects(self) -> dict[str, str]:
        """Subjects that have log entries, mapped to their latest display name."""
        with self._lock:
            return self._store.logged_subjects()

    def get_statistics(
        self,
        subject_id: str | None = None,
        *,
        window: TimeWindow | None = None,
        tz: tzinfo | None = None,
        top_limit: int = DEFAULT_TOP_ACTIVITIES,
    ) -> StatisticsReport:
        entries = self.get_logs(subject_id, window=window)
        return compute_statistics(entries, tz=tz, top_limit=top_limit)

    def subject_state(self, subject_id: str) -> SubjectTrackingState | None:
        """Copy of the tracked state for a subject, if it was ever admitted."""
        with self._lock:
            state = self._tracker.get(subject_id)
            return replace(state) if state is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    # -- exports ---------------------------------------------------------

    def export_json(self) -> str:
        return dump_logs(self._snapshot_entries())

    def export_text(self, *, tz: tzinfo | None = None) -> str:
        return render_text(self._snapshot_entries(), tz=tz)

    # -- resets ----------------------------------------------------------

    def clear_all(self) -> None:
        """Empty the log and forget tracked subjects in one step."""
        with self._lock:
            self._store.clear()
            self._registry.clear()
        logger.info("Cleared activity log and tracked subjects")

    def reset_tracking_state(self) -> None:
        """Forget last-known statuses/voice channels and seen message ids."""
        with self._lock:
            self._tracker.reset()
            self._dedup.reset()

    # -- persistence -----------------------------------------------------

    def snapshot(self) -> tuple[str, str]:
        """Serialized (logs, tracked ids) as of now."""
        with self._lock:
            entries = self._store.query_all()
            tracked = self._registry.list_tracked()
        return dump_logs(entries), dump_tracked(tracked)

    def restore(self, logs_json: str | None, tracked_json: str | None) -> bool:
        """Replace log and tracked ids from serialized data.

        Unreadable data leaves the engine empty and returns False.
        """
        entries: list[LogEntry] = []
        tracked: set[str] = set()
        ok = True
        try:
            if logs_json:
                entries = load_logs(logs_json)
            if tracked_json:
                tracked = load_tracked(tracked_json)
        except ValueError as e:
            logger.warning("Persisted tracker state is unreadable, starting empty: %s", e)
            entries, tracked = [], set()
            ok = False

        with self._lock:
            self._store.clear()
            self._store.extend(entries)
            self._registry.clear()
            for subject_id in tracked:
                self._registry.track(subject_id)
            for entry in self._store.query_all():
                if isinstance(entry.payload, MessagePayload) and entry.payload.message_id:
                    self._dedup.observe(entry.payload.message_id)
            last = self._store.last_timestamp()
            if last is not None:
                self._last_ts = max(self._last_ts, last)

        logger.info("Restored %s log entries and %s tracked subjects", len(entries), len(tracked))
        return ok

    async def save_to(self, store: StateStore) -> None:
        logs_json, tracked_json = self.snapshot()
        await store.save(logs_json, tracked_json)

    async def load_from(self, store: StateStore) -> bool:
        logs_json, tracked_json = await store.load()
        return self.restore(logs_json, tracked_json)

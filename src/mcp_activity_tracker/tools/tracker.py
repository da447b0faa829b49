"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into engine calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, tzinfo
from typing import Any

from mcp_activity_tracker.core.collaborators import DictNameResolver
from mcp_activity_tracker.core.engine import TrackerEngine
from mcp_activity_tracker.core.export import entry_to_dict, stats_to_dict
from mcp_activity_tracker.core.normalize import parse_source_kind
from mcp_activity_tracker.core.time_window import TimeWindow, resolve_time_window

DEFAULT_LIMIT = 200
HARD_LIMIT = 1000
EXPORT_FORMATS = ("json", "text")


def _tz(utc: bool) -> tzinfo:
    if utc:
        return UTC
    return datetime.now().astimezone().tzinfo or UTC


def _window(
    *,
    since: str | None,
    until: str | None,
    date: str | None,
    hour: str | None,
    week: str | None,
    month: str | None,
    tz: tzinfo,
) -> TimeWindow | None:
    window = resolve_time_window(
        since=since, until=until, date_=date, hour=hour, week=week, month=month, tz=tz
    )
    return None if window.unbounded else window


def _clean_id(value: str, what: str = "subject_id") -> str:
    s = (value or "").strip()
    if not s:
        raise ValueError(f"{what} must be a non-empty string")
    return s


def _subscriptions(engine: TrackerEngine) -> dict[str, Any]:
    return {"tracked": sorted(engine.list_tracked()), "track_all": engine.track_all}


def track_subject_impl(engine: TrackerEngine, *, subject_id: str) -> dict[str, Any]:
    engine.track(_clean_id(subject_id))
    return _subscriptions(engine)


def untrack_subject_impl(engine: TrackerEngine, *, subject_id: str) -> dict[str, Any]:
    engine.untrack(_clean_id(subject_id))
    return _subscriptions(engine)


def list_tracked_impl(engine: TrackerEngine) -> dict[str, Any]:
    return _subscriptions(engine)


def set_track_all_impl(engine: TrackerEngine, *, enabled: bool) -> dict[str, Any]:
    engine.set_track_all(bool(enabled))
    return _subscriptions(engine)


def ingest_event_impl(
    engine: TrackerEngine, *, kind: str, payload: Mapping[str, Any]
) -> dict[str, Any]:
    """Feed one raw host event (presence | voice | message) into the engine."""
    source = parse_source_kind(kind)
    if not isinstance(payload, Mapping):
        raise ValueError("payload must be a JSON object")
    entries = engine.ingest(source, payload)
    return {
        "kind": source.value,
        "accepted": len(entries),
        "entries": [entry_to_dict(e) for e in entries],
    }


def register_names_impl(
    engine: TrackerEngine,
    *,
    channels: Mapping[str, str] | None = None,
    guilds: Mapping[str, str] | None = None,
    subjects: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    resolver = engine.resolver
    if not isinstance(resolver, DictNameResolver):
        raise ValueError("This engine's name resolver does not accept registered names.")
    resolver.remember(channels=channels, guilds=guilds, subjects=subjects)
    return {
        "channels": len(resolver.channels),
        "guilds": len(resolver.guilds),
        "subjects": len(resolver.subjects),
    }


def get_logs_impl(
    engine: TrackerEngine,
    *,
    subject_id: str | None = None,
    since: str | None = None,
    until: str | None = None,
    date: str | None = None,
    hour: str | None = None,
    week: str | None = None,
    month: str | None = None,
    search: str | None = None,
    limit: int | None = None,
    newest_first: bool = True,
    utc: bool = False,
) -> dict[str, Any]:
    """Implementation for the `get_logs` MCP tool.

    Notes
    -----
    - Time window selection precedence: date/hour/week/month > since/until.
    - ``search`` matches a display-name substring (case-insensitive) or an exact subject id.
    - ``limit`` keeps the most recent entries and is hard-capped.
    """
    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    limit = min(limit, HARD_LIMIT)

    window = _window(
        since=since, until=until, date=date, hour=hour, week=week, month=month, tz=_tz(utc)
    )
    entries = engine.get_logs(subject_id or None, window=window, search=(search or "").strip() or None)
    total = len(entries)
    entries = entries[-limit:]
    if newest_first:
        entries.reverse()

    return {
        "count": len(entries),
        "total": total,
        "entries": [entry_to_dict(e) for e in entries],
    }


def list_logged_subjects_impl(engine: TrackerEngine) -> dict[str, Any]:
    """Subjects that have log entries, with their most recent display name."""
    subjects = [
        {"subject_id": subject_id, "display_name": name}
        for subject_id, name in engine.logged_subjects().items()
    ]
    return {"count": len(subjects), "subjects": subjects}


def get_statistics_impl(
    engine: TrackerEngine,
    *,
    subject_id: str | None = None,
    since: str | None = None,
    until: str | None = None,
    date: str | None = None,
    hour: str | None = None,
    week: str | None = None,
    month: str | None = None,
    utc: bool = False,
) -> dict[str, Any]:
    tz = _tz(utc)
    window = _window(since=since, until=until, date=date, hour=hour, week=week, month=month, tz=tz)
    report = engine.get_statistics(subject_id or None, window=window, tz=tz)
    out = stats_to_dict(report)
    out["subject_id"] = subject_id or None
    out["timezone"] = "UTC" if utc else "local"
    return out


def export_logs_impl(engine: TrackerEngine, *, fmt: str = "json", utc: bool = False) -> dict[str, Any]:
    name = (fmt or "").strip().lower()
    if name not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format '{fmt}'. Valid values: {', '.join(EXPORT_FORMATS)}.")
    if name == "json":
        content = engine.export_json()
    else:
        content = engine.export_text(tz=_tz(utc))
    return {"format": name, "content": content}


def clear_all_impl(engine: TrackerEngine) -> dict[str, Any]:
    engine.clear_all()
    return {"cleared": True, **_subscriptions(engine)}

"""Human- and tool-facing renderings of log entries and statistics."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, tzinfo
from typing import Any

from .models import LogEntry, MessagePayload, PresencePayload, StatusPayload, VoicePayload, VoiceTransition
from .persistence import entry_to_record
from .stats import StatisticsReport

TEXT_TITLE = "Activity Tracker Logs"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
TIME_FORMAT = "%H:%M:%S"

_VOICE_VERBS = {
    VoiceTransition.JOIN: "joined",
    VoiceTransition.LEAVE: "left",
    VoiceTransition.MOVE: "moved to",
}


def _fmt_ts(timestamp_ms: int, fmt: str, tz: tzinfo | None) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz).strftime(fmt)


def entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    """Convert a LogEntry into a JSON-serializable dict (same shape as the export)."""
    d = entry_to_record(entry).model_dump(mode="json")
    d["category"] = entry.category.value
    return d


def voice_summary(entry: LogEntry, payload: VoicePayload, *, tz: tzinfo | None = None) -> str:
    verb = _VOICE_VERBS[payload.transition]
    return (
        f'{entry.display_name} has {verb} the voice channel "{payload.channel_name}", '
        f'in the server "{payload.guild_name}" at {_fmt_ts(entry.timestamp, TIME_FORMAT, tz)}'
    )


def status_summary(entry: LogEntry, payload: StatusPayload) -> str:
    return f"{entry.display_name} is now {payload.status_value}"


def _detail_lines(entry: LogEntry, tz: tzinfo | None) -> list[str]:
    payload = entry.payload
    if isinstance(payload, PresencePayload):
        return [
            f"  • {a.name}" + (f" - {a.details}" if a.details else "")
            for a in payload.activities
        ]
    if isinstance(payload, VoicePayload):
        return ["  " + voice_summary(entry, payload, tz=tz)]
    if isinstance(payload, MessagePayload):
        return [f"  {payload.content}"]
    if isinstance(payload, StatusPayload):
        return [f"  Status: {payload.status_value}"]
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def render_text(entries: Iterable[LogEntry], *, tz: tzinfo | None = None) -> str:
    """Deterministic plain-text export, oldest entry first."""
    lines = [TEXT_TITLE, "=" * 50, ""]
    for e in entries:
        lines.append(
            f"{e.display_name} - {e.category.value} - {_fmt_ts(e.timestamp, TIMESTAMP_FORMAT, tz)}"
        )
        lines.extend(_detail_lines(e, tz))
        lines.append("")
    return "\n".join(lines) + "\n"


def stats_to_dict(report: StatisticsReport) -> dict[str, Any]:
    return {
        "total_entries": report.total_entries,
        "unique_subjects": report.unique_subjects,
        "category_counts": {c.value: n for c, n in report.category_counts.items()},
        "hour_counts": list(report.hour_counts),
        "busiest_hour": report.busiest_hour,
        "heatmap": [
            {"day_of_week": day, "hour": hour, "count": count}
            for (day, hour), count in sorted(report.heatmap.items())
        ],
        "total_voice_minutes": round(report.total_voice_minutes, 2),
        "top_activities": [{"name": name, "count": n} for name, n in report.top_activities],
    }

"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: ingest raw host events, manage subscriptions, query logs and statistics
- Resources: exports and schemas addressable by URI
- Prompts: reusable templates for summarizing a subject's activity

Run locally (stdio):
    python -m mcp_activity_tracker.server.tracker_server
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_activity_tracker.core.config import TrackerConfig, resolve_tracker_config
from mcp_activity_tracker.core.engine import TrackerEngine
from mcp_activity_tracker.core.persistence import JsonFileStore, StateStore
from mcp_activity_tracker.prompts.registry import register_prompts
from mcp_activity_tracker.resources.registry import register_resources
from mcp_activity_tracker.tools.tracker import (
    clear_all_impl,
    export_logs_impl,
    get_logs_impl,
    get_statistics_impl,
    ingest_event_impl,
    list_logged_subjects_impl,
    list_tracked_impl,
    register_names_impl,
    set_track_all_impl,
    track_subject_impl,
    untrack_subject_impl,
)

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    stdout carries the MCP transport, so logs go to stderr.
    """
    level_name = os.getenv("ACTIVITY_TRACKER_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_server(engine: TrackerEngine, *, store: StateStore | None = None) -> FastMCP:
    """Build a FastMCP server bound to one engine (and optional state store)."""
    mcp = FastMCP("activity-tracker", json_response=True)

    async def persist() -> None:
        if store is None:
            return
        try:
            await engine.save_to(store)
        except OSError as e:
            LOGGER.warning("Could not persist tracker state: %s", e)

    register_resources(mcp, engine)
    register_prompts(mcp)

    @mcp.tool()
    async def ingest_event(kind: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Feed one raw host event into the tracker.

        Parameters
        ----------
        kind:
            "presence", "voice" (voice-state batch) or "message".
        payload:
            The raw event object as dispatched by the host, e.g.
            {"user": {"id": "1"}, "status": "online", "activities": [...]}.

        Returns
        -------
        dict:
            {"kind": str, "accepted": int, "entries": list[dict]}
        """
        out = ingest_event_impl(engine, kind=kind, payload=payload)
        if out["accepted"]:
            await persist()
        return out

    @mcp.tool()
    async def track_subject(subject_id: str) -> dict[str, Any]:
        """Start logging events for a subject."""
        out = track_subject_impl(engine, subject_id=subject_id)
        await persist()
        return out

    @mcp.tool()
    async def untrack_subject(subject_id: str) -> dict[str, Any]:
        """Stop logging events for a subject (existing entries are kept)."""
        out = untrack_subject_impl(engine, subject_id=subject_id)
        await persist()
        return out

    @mcp.tool()
    def list_tracked() -> dict[str, Any]:
        """Return tracked subject ids and the track-everyone flag."""
        return list_tracked_impl(engine)

    @mcp.tool()
    def set_track_all(enabled: bool) -> dict[str, Any]:
        """Track every subject regardless of the tracked list."""
        return set_track_all_impl(engine, enabled=enabled)

    @mcp.tool()
    def register_names(
        channels: dict[str, str] | None = None,
        guilds: dict[str, str] | None = None,
        subjects: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Teach the tracker display names for channel, server and subject ids."""
        return register_names_impl(engine, channels=channels, guilds=guilds, subjects=subjects)

    @mcp.tool()
    def get_logs(
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
        """Return logged entries, optionally for one subject and time window.

        Parameters
        ----------
        subject_id:
            Restrict to one subject. Omit for everyone.
        since/until:
            ISO-8601 datetimes. Without an offset they are read in local time
            (or UTC when ``utc`` is true).
        date/hour/week/month:
            Convenience selectors (2025-12-31, 2025-12-31T20, 2025-W52, 2025-12).
        search:
            Keep entries whose display name contains this text (case-insensitive)
            or whose subject id equals it.
        limit:
            Maximum number of (most recent) entries returned.
        newest_first:
            Order of the returned entries.
        """
        return get_logs_impl(
            engine,
            subject_id=subject_id,
            since=since,
            until=until,
            date=date,
            hour=hour,
            week=week,
            month=month,
            search=search,
            limit=limit,
            newest_first=newest_first,
            utc=utc,
        )

    @mcp.tool()
    def list_logged_subjects() -> dict[str, Any]:
        """List subjects that have log entries, with their latest display name."""
        return list_logged_subjects_impl(engine)

    @mcp.tool()
    def get_statistics(
        subject_id: str | None = None,
        since: str | None = None,
        until: str | None = None,
        date: str | None = None,
        hour: str | None = None,
        week: str | None = None,
        month: str | None = None,
        utc: bool = False,
    ) -> dict[str, Any]:
        """Category counts, hourly histogram, day x hour heatmap and voice minutes."""
        return get_statistics_impl(
            engine,
            subject_id=subject_id,
            since=since,
            until=until,
            date=date,
            hour=hour,
            week=week,
            month=month,
            utc=utc,
        )

    @mcp.tool()
    def export_logs(format: str = "json", utc: bool = False) -> dict[str, Any]:
        """Export the whole log as JSON or as a plain-text report."""
        return export_logs_impl(engine, fmt=format, utc=utc)

    @mcp.tool()
    async def clear_all() -> dict[str, Any]:
        """Delete every log entry and forget tracked subjects."""
        out = clear_all_impl(engine)
        await persist()
        return out

    return mcp


def build_from_env(cfg: TrackerConfig | None = None) -> tuple[TrackerEngine, StateStore | None]:
    cfg = resolve_tracker_config(cfg)
    engine = TrackerEngine(cfg)
    store = JsonFileStore(cfg.state_path) if cfg.state_path is not None else None
    return engine, store


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    _ = argv or sys.argv[1:]
    engine, store = build_from_env()
    if store is not None:
        asyncio.run(engine.load_from(store))
    LOGGER.debug("Starting MCP server (transport=stdio)")
    create_server(engine, store=store).run(transport="stdio")


if __name__ == "__main__":
    main()

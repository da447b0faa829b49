"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import json
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_activity_tracker.core.engine import TrackerEngine
from mcp_activity_tracker.core.persistence import log_entry_schema
from mcp_activity_tracker.tools.tracker import get_statistics_impl

SAMPLE_EVENTS = [
    {"kind": "presence", "payload": {"user": {"id": "1001", "username": "ada"}, "status": "online", "clientStatus": {"desktop": "online"}}},
    {"kind": "presence", "payload": {"user": {"id": "1001"}, "activities": [{"name": "Chess", "type": 0, "details": "Ranked"}]}},
    {"kind": "voice", "payload": {"voiceStates": [{"userId": "1001", "channelId": "55", "guildId": "9"}]}},
    {"kind": "message", "payload": {"message": {"id": "m-1", "author": {"id": "1001", "username": "ada"}, "content": "gg", "channel_id": "56", "guild_id": "9"}}},
    {"kind": "voice", "payload": {"voiceStates": [{"userId": "1001", "oldChannelId": "55", "guildId": "9"}]}},
]


def register_resources(mcp: FastMCP, engine: TrackerEngine) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://activity-tracker/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://activity-tracker/help\n"
            "- app://activity-tracker/logs.json (full log export)\n"
            "- app://activity-tracker/logs.txt (plain-text report, local time)\n"
            "- app://activity-tracker/statistics (statistics for all subjects)\n"
            "- app://activity-tracker/schemas/log-entry\n"
            "- app://activity-tracker/examples/events (sample raw events for ingest_event)\n"
            f"\nEntries logged: {len(engine)} / {engine.cfg.log_capacity}\n"
        )

    @mcp.resource("app://activity-tracker/logs.json")
    def logs_json() -> str:
        """Return the full log as a JSON array (oldest first)."""
        return engine.export_json()

    @mcp.resource("app://activity-tracker/logs.txt")
    def logs_text() -> str:
        """Return the full log as a readable report."""
        return engine.export_text()

    @mcp.resource("app://activity-tracker/statistics")
    def statistics() -> dict[str, Any]:
        """Return statistics for every logged subject."""
        return get_statistics_impl(engine)

    @mcp.resource("app://activity-tracker/schemas/log-entry")
    def entry_schema() -> dict[str, Any]:
        """Return the JSON schema of one exported log entry."""
        return log_entry_schema()

    @mcp.resource("app://activity-tracker/examples/events")
    def sample_events() -> str:
        """Return sample raw events, one JSON object per line."""
        return "\n".join(json.dumps(e) for e in SAMPLE_EVENTS) + "\n"

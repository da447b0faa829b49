"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP


def _window_lines(
    *,
    date: str | None,
    week: str | None,
    month: str | None,
    since: str | None,
    until: str | None,
) -> list[str]:
    """Return the single most specific window as tool-call argument lines."""
    if date is not None:
        return [f"- date: {date}"]
    if week is not None:
        return [f"- week: {week}"]
    if month is not None:
        return [f"- month: {month}"]
    lines: list[str] = []
    if since is not None:
        lines.append(f"- since: {since}")
    if until is not None:
        lines.append(f"- until: {until}")
    return lines


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def summarize_subject_activity(
        subject_id: str,
        date: str | None = None,
        week: str | None = None,
        month: str | None = None,
        since: str | None = None,
        until: str | None = None,
    ) -> list[dict[str, Any]]:
        """Build a prompt that summarizes what one subject has been doing."""
        call_lines = [f"- subject_id: {subject_id}"]
        call_lines.extend(
            _window_lines(date=date, week=week, month=month, since=since, until=until)
        )
        call_block = "\n".join(call_lines)
        return [
            {
                "role": "system",
                "content": (
                    "You are a careful activity analyst. Summarize presence, voice and message "
                    "activity using only tool output. Do not invent events; if the log is "
                    "empty for the window, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Summarize this subject's activity. Follow this workflow:\n"
                    "- Call get_statistics with the parameters below.\n"
                    "- Call get_logs with the same parameters (limit 50) for concrete examples.\n"
                    "- Voice minutes are approximate: unmatched joins and leaves are ignored.\n\n"
                    "Parameters:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Overview (2-3 sentences)\n"
                    "2) Busiest hours and days (from the histogram and heatmap)\n"
                    "3) Top activities\n"
                    "4) Voice sessions and status changes worth noting\n"
                ),
            },
        ]

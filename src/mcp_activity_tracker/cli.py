"""Replay recorded host events through the tracker (local testing, not MCP)."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import UTC
from pathlib import Path

import aiofiles

from mcp_activity_tracker.core.config import TrackerConfig, resolve_tracker_config
from mcp_activity_tracker.core.engine import TrackerEngine
from mcp_activity_tracker.core.export import entry_to_dict, stats_to_dict
from mcp_activity_tracker.core.normalize import parse_source_kind

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("logs", "stats", "json", "text")


async def replay_file(engine: TrackerEngine, path: Path, *, encoding: str = "utf-8") -> int:
    """Ingest every ``{"kind": ..., "payload": ...}`` line; return lines ingested."""
    if not path.is_file():
        raise FileNotFoundError(f"Events file not found: {path}")

    ingested = 0
    async with aiofiles.open(path, encoding=encoding, errors="replace") as f:
        line_no = 0
        async for line in f:
            line_no += 1
            s = line.strip()
            if not s:
                continue
            try:
                record = json.loads(s)
                kind = parse_source_kind(record["kind"])
                payload = record["payload"]
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping line %s: %s", line_no, e)
                continue
            engine.ingest(kind, payload)
            ingested += 1
    return ingested


def _print_logs(engine: TrackerEngine, subject_id: str | None) -> None:
    entries = engine.get_logs(subject_id)
    for e in entries:
        d = entry_to_dict(e)
        print(f"{e.timestamp} {e.display_name} [{e.category.value}] {json.dumps(d['payload'])}")
    print(f"\nLogged {len(entries)} entries.")


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="Replay presence/voice/message events through the tracker.")
    p.add_argument("events_path", help="JSON-lines file of {\"kind\": ..., \"payload\": ...} records")
    p.add_argument("--track", action="append", default=[], metavar="ID", help="Track a subject id (repeatable)")
    p.add_argument("--track-all", action="store_true", help="Track every subject")
    p.add_argument("--subject", default=None, help="Restrict logs/stats output to one subject id")
    p.add_argument("--format", dest="output", choices=OUTPUT_FORMATS, default="logs")
    p.add_argument("--utc", action="store_true", help="Render hours and timestamps in UTC instead of local time")
    p.add_argument("--notify", action="store_true", help="Log status and voice notifications")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args(argv)

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = resolve_tracker_config(
            TrackerConfig(notify_status=args.notify, notify_voice=args.notify)
        )
        if args.track_all:
            # The flag wins over ACTIVITY_TRACKER_TRACK_ALL.
            cfg = replace(cfg, track_all=True)
        engine = TrackerEngine(cfg)
        for subject_id in args.track:
            engine.track(subject_id)
        asyncio.run(replay_file(engine, Path(args.events_path)))
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    tz = UTC if args.utc else None
    if args.output == "logs":
        _print_logs(engine, args.subject)
    elif args.output == "stats":
        report = engine.get_statistics(args.subject, tz=tz)
        print(json.dumps(stats_to_dict(report), indent=2))
    elif args.output == "json":
        print(engine.export_json())
    else:
        print(engine.export_text(tz=tz), end="")


if __name__ == "__main__":
    main()

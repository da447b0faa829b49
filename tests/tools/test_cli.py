from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcp_activity_tracker.cli import main, replay_file
from mcp_activity_tracker.core.config import TrackerConfig
from mcp_activity_tracker.core.engine import TrackerEngine
from mcp_activity_tracker.resources.registry import SAMPLE_EVENTS


def _write_events(path: Path, *extra_lines: str) -> None:
    lines = [json.dumps(e) for e in SAMPLE_EVENTS]
    lines[2:2] = extra_lines
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.mark.asyncio
async def test_replay_file_skips_bad_lines(tmp_path: Path) -> None:
    events = tmp_path / "events.jsonl"
    _write_events(events, "not json", '{"kind": "typing", "payload": {}}', "")

    engine = TrackerEngine(TrackerConfig(track_all=True))
    assert await replay_file(engine, events) == len(SAMPLE_EVENTS)
    assert [e.category.value for e in engine.get_logs()] == [
        "status",
        "presence",
        "voice",
        "message",
        "voice",
    ]


@pytest.mark.asyncio
async def test_replay_file_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        await replay_file(TrackerEngine(), tmp_path / "missing.jsonl")


def test_main_prints_statistics(tmp_path: Path, capsys) -> None:
    events = tmp_path / "events.jsonl"
    _write_events(events)

    main([str(events), "--track", "1001", "--format", "stats", "--utc"])

    out = json.loads(capsys.readouterr().out)
    assert out["total_entries"] == 5
    assert out["unique_subjects"] == 1
    assert out["top_activities"] == [{"name": "Chess", "count": 1}]


def test_main_untracked_subjects_are_ignored(tmp_path: Path, capsys) -> None:
    events = tmp_path / "events.jsonl"
    _write_events(events)

    main([str(events), "--track", "someone-else"])

    assert "Logged 0 entries." in capsys.readouterr().out


def test_main_missing_file_exits_2(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "nope.jsonl")])
    assert exc.value.code == 2


def test_main_track_all_flag_beats_env(tmp_path: Path, capsys, monkeypatch) -> None:
    monkeypatch.setenv("ACTIVITY_TRACKER_TRACK_ALL", "false")
    events = tmp_path / "events.jsonl"
    _write_events(events)

    main([str(events), "--track-all"])

    assert "Logged 5 entries." in capsys.readouterr().out

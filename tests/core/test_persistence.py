from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from mcp_activity_tracker.core.persistence import (
    JsonFileStore,
    MemoryStore,
    dump_logs,
    dump_tracked,
    load_logs,
    load_tracked,
    log_entry_schema,
)


@pytest.mark.asyncio
async def test_json_file_store_round_trip(tmp_path: Path, engine, presence, voice) -> None:
    engine.ingest_presence(presence(status="online", client_status={"desktop": "online"}))
    engine.ingest_voice_states(voice(channel="c1"))
    store = JsonFileStore(tmp_path / "state" / "tracker.json")

    await engine.save_to(store)

    doc = json.loads((tmp_path / "state" / "tracker.json").read_text(encoding="utf-8"))
    assert doc["version"] == 1
    assert doc["tracked_ids"] == ["u1"]
    assert [d["payload"]["category"] for d in doc["logs"]] == ["status", "voice"]
    assert list((tmp_path / "state").glob("*.tmp")) == []

    logs_json, tracked_json = await store.load()
    assert load_logs(logs_json) == engine.get_logs()
    assert load_tracked(tracked_json) == {"u1"}


@pytest.mark.asyncio
async def test_json_file_store_concurrent_saves(tmp_path: Path, make_engine, message) -> None:
    eng = make_engine(track_all=True)
    for i in range(300):
        eng.ingest_message(message(message_id=str(i), content="x" * 200))
    logs_json, _ = eng.snapshot()
    store = JsonFileStore(tmp_path / "state.json")

    await asyncio.gather(*(store.save(logs_json, json.dumps([str(i)])) for i in range(20)))

    doc = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert len(doc["logs"]) == 300
    assert doc["tracked_ids"] in [[str(i)] for i in range(20)]
    assert list(tmp_path.glob("*.tmp")) == []

    loaded_logs, loaded_tracked = await store.load()
    assert load_logs(loaded_logs) == eng.get_logs()
    assert len(load_tracked(loaded_tracked)) == 1


@pytest.mark.asyncio
async def test_json_file_store_missing_file(tmp_path: Path) -> None:
    assert await JsonFileStore(tmp_path / "nope.json").load() == (None, None)


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["{broken", "[1, 2, 3]"])
async def test_json_file_store_unreadable_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "state.json"
    path.write_text(content, encoding="utf-8")
    assert await JsonFileStore(path).load() == (None, None)


@pytest.mark.asyncio
async def test_load_from_empty_store_keeps_engine_empty(make_engine) -> None:
    eng = make_engine()
    assert await eng.load_from(MemoryStore()) is True
    assert len(eng) == 0
    assert eng.list_tracked() == set()


@pytest.mark.asyncio
async def test_memory_store_save_then_load(make_engine, engine, message) -> None:
    engine.ingest_message(message())
    store = MemoryStore()
    await engine.save_to(store)

    other = make_engine()
    assert await other.load_from(store) is True
    assert other.get_logs() == engine.get_logs()
    assert other.is_tracked("u1")


@pytest.mark.asyncio
async def test_load_from_corrupt_store_starts_empty(make_engine) -> None:
    eng = make_engine()
    eng.track("u1")
    assert await eng.load_from(MemoryStore('[{"bogus": true}]', '["a"]')) is False
    assert len(eng) == 0
    assert eng.list_tracked() == set()


def test_load_logs_rejects_unknown_category() -> None:
    bad = json.dumps(
        [
            {
                "subject_id": "u1",
                "display_name": "u1",
                "timestamp": 1,
                "payload": {"category": "typing"},
            }
        ]
    )
    with pytest.raises(ValidationError):
        load_logs(bad)


def test_dump_tracked_is_sorted() -> None:
    assert json.loads(dump_tracked({"b", "a", "c"})) == ["a", "b", "c"]


def test_dump_logs_empty() -> None:
    assert json.loads(dump_logs([])) == []


def test_log_entry_schema_lists_payload_variants() -> None:
    schema = log_entry_schema()
    assert set(schema["properties"]) >= {"subject_id", "display_name", "timestamp", "payload"}
    assert {"PresenceRecord", "VoiceRecord", "MessageRecord", "StatusRecord"} <= set(schema["$defs"])

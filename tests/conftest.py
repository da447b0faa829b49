from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from mcp_activity_tracker.core.collaborators import DictNameResolver
from mcp_activity_tracker.core.config import TrackerConfig
from mcp_activity_tracker.core.engine import TrackerEngine

START_MS = 1_767_225_600_000  # 2026-01-01T00:00:00Z (a Thursday)


class FakeClock:
    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingSink:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []

    def notify(self, summary: str, *, subject_id: str, display_name: str) -> None:
        self.calls.append((summary, subject_id, display_name))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def resolver() -> DictNameResolver:
    return DictNameResolver(
        channels={"c1": "general-voice", "c2": "gaming"},
        guilds={"g1": "Home Server"},
        subjects={"u1": "Ada"},
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_engine(
    clock: FakeClock, resolver: DictNameResolver, sink: RecordingSink
) -> Callable[..., TrackerEngine]:
    def _make(**cfg_kwargs: Any) -> TrackerEngine:
        return TrackerEngine(TrackerConfig(**cfg_kwargs), resolver=resolver, notifier=sink, clock=clock)

    return _make


@pytest.fixture
def engine(make_engine: Callable[..., TrackerEngine]) -> TrackerEngine:
    eng = make_engine()
    eng.track("u1")
    return eng


@pytest.fixture
def presence() -> Callable[..., dict[str, Any]]:
    def _build(
        user_id: str | None = "u1",
        *,
        status: str | None = None,
        client_status: dict[str, str] | None = None,
        activities: list[dict[str, Any]] | None = None,
        username: str | None = None,
    ) -> dict[str, Any]:
        user: dict[str, Any] = {}
        if user_id is not None:
            user["id"] = user_id
        if username is not None:
            user["username"] = username
        raw: dict[str, Any] = {"user": user}
        if status is not None:
            raw["status"] = status
        if client_status is not None:
            raw["clientStatus"] = client_status
        if activities is not None:
            raw["activities"] = activities
        return raw

    return _build


@pytest.fixture
def voice() -> Callable[..., dict[str, Any]]:
    def _build(
        user_id: str = "u1",
        *,
        channel: str | None = None,
        old: str | None = None,
        guild: str | None = "g1",
    ) -> dict[str, Any]:
        state: dict[str, Any] = {"userId": user_id, "guildId": guild}
        if channel is not None:
            state["channelId"] = channel
        if old is not None:
            state["oldChannelId"] = old
        return {"voiceStates": [state]}

    return _build


@pytest.fixture
def message() -> Callable[..., dict[str, Any]]:
    def _build(
        user_id: str = "u1",
        *,
        message_id: str | None = "m1",
        content: str = "hello",
        channel: str | None = "c2",
        guild: str | None = "g1",
    ) -> dict[str, Any]:
        msg: dict[str, Any] = {
            "author": {"id": user_id, "username": f"user-{user_id}"},
            "content": content,
            "channel_id": channel,
            "guild_id": guild,
        }
        if message_id is not None:
            msg["id"] = message_id
        return {"message": msg}

    return _build

from __future__ import annotations

from pathlib import Path

import pytest

from mcp_activity_tracker.core.config import (
    LOG_CAPACITY_ENV,
    NOTIFY_VOICE_ENV,
    STATE_PATH_ENV,
    TRACK_ALL_ENV,
    TrackerConfig,
    resolve_tracker_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (TRACK_ALL_ENV, NOTIFY_VOICE_ENV, LOG_CAPACITY_ENV, STATE_PATH_ENV):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    cfg = TrackerConfig()
    assert (cfg.log_capacity, cfg.dedup_soft_cap, cfg.dedup_retain) == (1000, 1000, 500)
    assert cfg.track_all is False
    assert cfg.state_path is None


def test_no_env_returns_same_config() -> None:
    cfg = TrackerConfig(notify_status=True)
    assert resolve_tracker_config(cfg) is cfg


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(TRACK_ALL_ENV, "yes")
    monkeypatch.setenv(NOTIFY_VOICE_ENV, "1")
    monkeypatch.setenv(LOG_CAPACITY_ENV, "250")
    monkeypatch.setenv(STATE_PATH_ENV, str(tmp_path / "state.json"))

    cfg = resolve_tracker_config()

    assert cfg.track_all is True
    assert cfg.notify_voice is True
    assert cfg.notify_status is False
    assert cfg.log_capacity == 250
    assert cfg.state_path == tmp_path / "state.json"


@pytest.mark.parametrize(
    ("env_name", "value"),
    [
        (TRACK_ALL_ENV, "maybe"),
        (LOG_CAPACITY_ENV, "lots"),
        (LOG_CAPACITY_ENV, "0"),
    ],
)
def test_invalid_env_values(monkeypatch: pytest.MonkeyPatch, env_name: str, value: str) -> None:
    monkeypatch.setenv(env_name, value)
    with pytest.raises(ValueError, match=env_name):
        resolve_tracker_config()


def test_invalid_config_values() -> None:
    with pytest.raises(ValueError):
        TrackerConfig(log_capacity=0)
    with pytest.raises(ValueError):
        TrackerConfig(dedup_soft_cap=10, dedup_retain=20)

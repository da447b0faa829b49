"""Tracker configuration and env overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

TRACK_ALL_ENV = "ACTIVITY_TRACKER_TRACK_ALL"
NOTIFY_STATUS_ENV = "ACTIVITY_TRACKER_NOTIFY_STATUS"
NOTIFY_VOICE_ENV = "ACTIVITY_TRACKER_NOTIFY_VOICE"
LOG_CAPACITY_ENV = "ACTIVITY_TRACKER_LOG_CAPACITY"
STATE_PATH_ENV = "ACTIVITY_TRACKER_STATE_PATH"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    log_capacity: int = 1000
    dedup_soft_cap: int = 1000
    dedup_retain: int = 500

    track_all: bool = False

    # Notification toggles (sink is only called when enabled)
    notify_status: bool = False
    notify_voice: bool = False

    # Where the server persists logs + tracked ids; None disables persistence.
    state_path: Path | None = None

    def __post_init__(self) -> None:
        if self.log_capacity < 1:
            raise ValueError("log_capacity must be >= 1")
        if self.dedup_retain < 1 or self.dedup_retain > self.dedup_soft_cap:
            raise ValueError("dedup_retain must be in [1, dedup_soft_cap]")


def _env_bool(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false)")


def _env_positive_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 1:
        raise ValueError(f"{name} must be >= 1")
    return value


def resolve_tracker_config(cfg: TrackerConfig | None = None) -> TrackerConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = TrackerConfig()

    overrides: dict[str, object] = {}

    for field_name, env_name in (
        ("track_all", TRACK_ALL_ENV),
        ("notify_status", NOTIFY_STATUS_ENV),
        ("notify_voice", NOTIFY_VOICE_ENV),
    ):
        flag = _env_bool(env_name)
        if flag is not None and flag != getattr(cfg, field_name):
            overrides[field_name] = flag

    capacity = _env_positive_int(LOG_CAPACITY_ENV)
    if capacity is not None and capacity != cfg.log_capacity:
        overrides["log_capacity"] = capacity

    state_path = os.getenv(STATE_PATH_ENV)
    if state_path:
        overrides["state_path"] = Path(state_path).expanduser()

    if not overrides:
        return cfg
    return replace(cfg, **overrides)

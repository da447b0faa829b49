"""Core data models for activity tracking."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Category(str, Enum):
    """Log entry discriminator."""

    PRESENCE = "presence"
    VOICE = "voice"
    MESSAGE = "message"
    STATUS = "status"


class VoiceTransition(str, Enum):
    """How a subject moved between voice channels."""

    JOIN = "join"
    LEAVE = "leave"
    MOVE = "move"


@dataclass(frozen=True, slots=True)
class Activity:
    """One item of a presence activity list (game, music, custom status...)."""

    name: str
    kind: int = 0
    details: str | None = None
    state: str | None = None
    start_time: int | None = None  # ms since epoch
    end_time: int | None = None


@dataclass(frozen=True, slots=True)
class PresencePayload:
    activities: tuple[Activity, ...]

    @property
    def category(self) -> Category:
        return Category.PRESENCE


@dataclass(frozen=True, slots=True)
class VoicePayload:
    channel_id: str
    channel_name: str
    transition: VoiceTransition
    guild_id: str | None
    guild_name: str

    @property
    def category(self) -> Category:
        return Category.VOICE


@dataclass(frozen=True, slots=True)
class MessagePayload:
    content: str
    channel_id: str | None
    channel_name: str | None = None
    guild_id: str | None = None
    guild_name: str | None = None
    message_id: str | None = None  # dedup key, kept so exports can be replayed

    @property
    def category(self) -> Category:
        return Category.MESSAGE


@dataclass(frozen=True, slots=True)
class StatusPayload:
    status_value: str
    raw_client_status: Mapping[str, Any] | None = None

    @property
    def category(self) -> Category:
        return Category.STATUS


Payload = Union[PresencePayload, VoicePayload, MessagePayload, StatusPayload]


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Immutable record in the activity log.

    The category is derived from the payload type, so an entry can never carry
    a payload that disagrees with its category.
    """

    subject_id: str
    display_name: str  # captured at write time; later renames do not apply
    timestamp: int  # ms since epoch
    payload: Payload

    @property
    def category(self) -> Category:
        return self.payload.category


@dataclass(frozen=True, slots=True)
class Candidate:
    """Provisional entry produced by normalization, not yet committed.

    ``has_client_status`` mirrors the upstream marker used to accept the very
    first status observation of a subject.
    """

    entry: LogEntry
    has_client_status: bool = False

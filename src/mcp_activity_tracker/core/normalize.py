"""Raw event normalization.

Turns loosely-typed host payloads (presence, voice-state, message) into
provisional log entries. Nothing here touches engine state; partial or
malformed payloads produce no candidates instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from .collaborators import NameResolver
from .models import (
    Activity,
    Candidate,
    LogEntry,
    MessagePayload,
    PresencePayload,
    StatusPayload,
    VoicePayload,
)
from .state import classify_voice_transition

logger = logging.getLogger(__name__)

Admit = Callable[[str], bool]

UNKNOWN_CHANNEL = "Unknown Channel"
UNKNOWN_SERVER = "Unknown Server"


class SourceKind(str, Enum):
    """Where a raw payload came from."""

    PRESENCE = "presence"
    VOICE = "voice"
    MESSAGE = "message"


def parse_source_kind(value: str) -> SourceKind:
    """Parse a user-supplied event kind (case-insensitive)."""
    name = (value or "").strip().lower()
    aliases = {"voice-state": "voice", "voice_state": "voice", "voice_states": "voice"}
    try:
        return SourceKind(aliases.get(name, name))
    except ValueError as e:
        valid = ", ".join(k.value for k in SourceKind)
        raise ValueError(f"Unknown event kind '{value}'. Valid values: {valid}.") from e


def _as_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip()
    return s or None


def _as_ms(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _as_text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def channel_label(channel_id: str | None, resolver: NameResolver) -> str:
    """Resolved channel name, or a label built from the raw id."""
    if channel_id is None:
        return UNKNOWN_CHANNEL
    return resolver.resolve_channel_name(channel_id) or f"Channel ID: {channel_id}"


def guild_label(guild_id: str | None, resolver: NameResolver) -> str:
    if guild_id is None:
        return UNKNOWN_SERVER
    return resolver.resolve_guild_name(guild_id) or f"Server ID: {guild_id}"


def _display_name(subject_id: str, username: Any, resolver: NameResolver) -> str:
    return resolver.resolve_subject_display_name(subject_id) or _as_text(username) or subject_id


def _parse_activity(raw: Any) -> Activity | None:
    if not isinstance(raw, Mapping):
        return None
    name = _as_text(raw.get("name"))
    if name is None:
        return None
    kind = raw.get("type", 0)
    timestamps = raw.get("timestamps")
    if not isinstance(timestamps, Mapping):
        timestamps = {}
    return Activity(
        name=name,
        kind=kind if isinstance(kind, int) and not isinstance(kind, bool) else 0,
        details=_as_text(raw.get("details")),
        state=_as_text(raw.get("state")),
        start_time=_as_ms(timestamps.get("start")),
        end_time=_as_ms(timestamps.get("end")),
    )


def normalize_presence(
    raw: Mapping[str, Any],
    *,
    resolver: NameResolver,
    now_ms: int,
    admit: Admit | None = None,
) -> list[Candidate]:
    """Presence update -> optional Status candidate, then optional Presence candidate."""
    user = raw.get("user")
    subject_id = _as_id(user.get("id")) if isinstance(user, Mapping) else None
    if subject_id is None:
        logger.debug("Skipping presence payload without user id")
        return []
    if admit is not None and not admit(subject_id):
        return []

    display_name = _display_name(subject_id, user.get("username"), resolver)
    out: list[Candidate] = []

    status = _as_text(raw.get("status"))
    if status is not None:
        client_status = raw.get("clientStatus")
        out.append(
            Candidate(
                entry=LogEntry(
                    subject_id=subject_id,
                    display_name=display_name,
                    timestamp=now_ms,
                    payload=StatusPayload(
                        status_value=status,
                        raw_client_status=(
                            dict(client_status) if isinstance(client_status, Mapping) else None
                        ),
                    ),
                ),
                has_client_status=client_status is not None,
            )
        )

    raw_activities = raw.get("activities")
    if isinstance(raw_activities, list):
        activities = tuple(a for a in map(_parse_activity, raw_activities) if a is not None)
        if activities:
            out.append(
                Candidate(
                    entry=LogEntry(
                        subject_id=subject_id,
                        display_name=display_name,
                        timestamp=now_ms,
                        payload=PresencePayload(activities=activities),
                    )
                )
            )

    return out


def normalize_voice_states(
    raw: Mapping[str, Any],
    *,
    resolver: NameResolver,
    now_ms: int,
    admit: Admit | None = None,
) -> list[Candidate]:
    """Voice-state batch -> one Voice candidate per record that changed channel."""
    states = raw.get("voiceStates")
    if not isinstance(states, list):
        logger.debug("Skipping voice payload without voiceStates list")
        return []

    out: list[Candidate] = []
    for state in states:
        if not isinstance(state, Mapping):
            continue
        subject_id = _as_id(state.get("userId"))
        if subject_id is None:
            logger.debug("Skipping voice state without userId")
            continue
        if admit is not None and not admit(subject_id):
            continue

        previous = _as_id(state.get("oldChannelId"))
        current = _as_id(state.get("channelId"))
        transition = classify_voice_transition(previous, current)
        if transition is None:
            logger.debug("Voice state for %s did not change channel", subject_id)
            continue

        channel_id = current or previous
        guild_id = _as_id(state.get("guildId"))
        out.append(
            Candidate(
                entry=LogEntry(
                    subject_id=subject_id,
                    display_name=_display_name(subject_id, state.get("username"), resolver),
                    timestamp=now_ms,
                    payload=VoicePayload(
                        channel_id=channel_id,
                        channel_name=channel_label(channel_id, resolver),
                        transition=transition,
                        guild_id=guild_id,
                        guild_name=guild_label(guild_id, resolver),
                    ),
                )
            )
        )
    return out


def normalize_message(
    raw: Mapping[str, Any],
    *,
    resolver: NameResolver,
    now_ms: int,
    admit: Admit | None = None,
) -> list[Candidate]:
    """Message create -> exactly one Message candidate (or none if malformed)."""
    message = raw.get("message")
    if not isinstance(message, Mapping):
        logger.debug("Skipping message payload without message object")
        return []
    author = message.get("author")
    subject_id = _as_id(author.get("id")) if isinstance(author, Mapping) else None
    if subject_id is None:
        logger.debug("Skipping message without author id")
        return []
    if admit is not None and not admit(subject_id):
        return []

    channel_id = _as_id(message.get("channel_id"))
    guild_id = _as_id(message.get("guild_id"))
    content = message.get("content")
    return [
        Candidate(
            entry=LogEntry(
                subject_id=subject_id,
                display_name=_display_name(subject_id, author.get("username"), resolver),
                timestamp=now_ms,
                payload=MessagePayload(
                    content=content if isinstance(content, str) else "",
                    channel_id=channel_id,
                    channel_name=channel_label(channel_id, resolver) if channel_id else None,
                    guild_id=guild_id,
                    guild_name=guild_label(guild_id, resolver) if guild_id else None,
                    message_id=_as_id(message.get("id")),
                ),
            )
        )
    ]


_NORMALIZERS = {
    SourceKind.PRESENCE: normalize_presence,
    SourceKind.VOICE: normalize_voice_states,
    SourceKind.MESSAGE: normalize_message,
}


def normalize(
    kind: SourceKind,
    raw: Any,
    *,
    resolver: NameResolver,
    now_ms: int,
    admit: Admit | None = None,
) -> list[Candidate]:
    """Dispatch a raw payload to the normalizer for its source kind."""
    if not isinstance(raw, Mapping):
        logger.debug("Skipping %s payload that is not an object", kind.value)
        return []
    return _NORMALIZERS[kind](raw, resolver=resolver, now_ms=now_ms, admit=admit)

"""Interfaces for the host-side collaborators the engine talks to."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


class NameResolver(Protocol):
    """Maps raw ids to human-readable names. Misses return None."""

    def resolve_channel_name(self, channel_id: str) -> str | None:
        ...

    def resolve_guild_name(self, guild_id: str) -> str | None:
        ...

    def resolve_subject_display_name(self, subject_id: str) -> str | None:
        ...


class NotificationSink(Protocol):
    """Receives human-readable summaries of accepted transitions."""

    def notify(self, summary: str, *, subject_id: str, display_name: str) -> None:
        ...


@dataclass(slots=True)
class DictNameResolver:
    """In-memory resolver fed by the host (or by the ``register_names`` tool)."""

    channels: dict[str, str] = field(default_factory=dict)
    guilds: dict[str, str] = field(default_factory=dict)
    subjects: dict[str, str] = field(default_factory=dict)

    def remember(
        self,
        *,
        channels: Mapping[str, str] | None = None,
        guilds: Mapping[str, str] | None = None,
        subjects: Mapping[str, str] | None = None,
    ) -> None:
        self.channels.update(channels or {})
        self.guilds.update(guilds or {})
        self.subjects.update(subjects or {})

    def resolve_channel_name(self, channel_id: str) -> str | None:
        return self.channels.get(channel_id)

    def resolve_guild_name(self, guild_id: str) -> str | None:
        return self.guilds.get(guild_id)

    def resolve_subject_display_name(self, subject_id: str) -> str | None:
        return self.subjects.get(subject_id)


class LoggingNotificationSink:
    """Default sink: writes notifications to the log."""

    def notify(self, summary: str, *, subject_id: str, display_name: str) -> None:
        logger.info("Notification for %s (%s): %s", display_name, subject_id, summary)

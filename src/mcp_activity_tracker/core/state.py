"""Per-subject transition detection.

Decides whether a normalized candidate is a meaningful change worth logging:
repeated statuses are suppressed, voice moves are classified. Presence and
message candidates always pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import (
    Candidate,
    MessagePayload,
    PresencePayload,
    StatusPayload,
    VoicePayload,
    VoiceTransition,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubjectTrackingState:
    last_status: str | None = None
    last_voice_channel_id: str | None = None


def classify_voice_transition(
    previous_channel_id: str | None, current_channel_id: str | None
) -> VoiceTransition | None:
    """Classify a (previous, current) channel pair; None when nothing changed."""
    if previous_channel_id == current_channel_id:
        return None
    if previous_channel_id is None:
        return VoiceTransition.JOIN
    if current_channel_id is None:
        return VoiceTransition.LEAVE
    return VoiceTransition.MOVE


class SubjectStateTracker:
    """Last-known status and voice channel per subject."""

    def __init__(self) -> None:
        self._states: dict[str, SubjectTrackingState] = {}

    def __contains__(self, subject_id: object) -> bool:
        return subject_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, subject_id: str) -> SubjectTrackingState | None:
        return self._states.get(subject_id)

    def reset(self) -> None:
        self._states.clear()

    def accept(self, candidate: Candidate) -> bool:
        """Return True when the candidate should be appended to the log."""
        entry = candidate.entry
        state = self._states.get(entry.subject_id)
        if state is None:
            state = self._states[entry.subject_id] = SubjectTrackingState()

        payload = entry.payload
        if isinstance(payload, StatusPayload):
            return self._accept_status(state, payload, has_client_status=candidate.has_client_status)
        if isinstance(payload, VoicePayload):
            if payload.transition is VoiceTransition.LEAVE:
                state.last_voice_channel_id = None
            else:
                state.last_voice_channel_id = payload.channel_id
            return True
        if isinstance(payload, (PresencePayload, MessagePayload)):
            return True
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

    @staticmethod
    def _accept_status(
        state: SubjectTrackingState, payload: StatusPayload, *, has_client_status: bool
    ) -> bool:
        value = payload.status_value
        if state.last_status is None:
            # First sighting: only trust it when the client-status marker is present.
            # Otherwise it becomes the baseline that later changes are compared with.
            state.last_status = value
            if not has_client_status:
                logger.debug("Seeded baseline status %r without logging", value)
            return has_client_status
        if value == state.last_status:
            return False
        state.last_status = value
        return True

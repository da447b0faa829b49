"""Wire schema for exported / persisted logs."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..models import (
    Activity,
    LogEntry,
    MessagePayload,
    Payload,
    PresencePayload,
    StatusPayload,
    VoicePayload,
    VoiceTransition,
)


class ActivityRecord(BaseModel):
    name: str
    kind: int = Field(default=0, description="Host activity type code.")
    details: str | None = None
    state: str | None = None
    start_time: int | None = Field(default=None, description="ms since epoch")
    end_time: int | None = Field(default=None, description="ms since epoch")


class PresenceRecord(BaseModel):
    category: Literal["presence"] = "presence"
    activities: list[ActivityRecord]


class VoiceRecord(BaseModel):
    category: Literal["voice"] = "voice"
    channel_id: str
    channel_name: str
    transition: VoiceTransition
    guild_id: str | None = None
    guild_name: str


class MessageRecord(BaseModel):
    category: Literal["message"] = "message"
    content: str
    channel_id: str | None = None
    channel_name: str | None = None
    guild_id: str | None = None
    guild_name: str | None = None
    message_id: str | None = None


class StatusRecord(BaseModel):
    category: Literal["status"] = "status"
    status_value: str
    raw_client_status: dict[str, Any] | None = None


PayloadRecord = Annotated[
    Union[PresenceRecord, VoiceRecord, MessageRecord, StatusRecord],
    Field(discriminator="category"),
]


class EntryRecord(BaseModel):
    subject_id: str
    display_name: str
    timestamp: int = Field(description="ms since epoch")
    payload: PayloadRecord


LOGS_ADAPTER = TypeAdapter(list[EntryRecord])
TRACKED_ADAPTER = TypeAdapter(list[str])


def _payload_to_record(payload: Payload) -> PresenceRecord | VoiceRecord | MessageRecord | StatusRecord:
    if isinstance(payload, PresencePayload):
        return PresenceRecord(
            activities=[
                ActivityRecord(
                    name=a.name,
                    kind=a.kind,
                    details=a.details,
                    state=a.state,
                    start_time=a.start_time,
                    end_time=a.end_time,
                )
                for a in payload.activities
            ]
        )
    if isinstance(payload, VoicePayload):
        return VoiceRecord(
            channel_id=payload.channel_id,
            channel_name=payload.channel_name,
            transition=payload.transition,
            guild_id=payload.guild_id,
            guild_name=payload.guild_name,
        )
    if isinstance(payload, MessagePayload):
        return MessageRecord(
            content=payload.content,
            channel_id=payload.channel_id,
            channel_name=payload.channel_name,
            guild_id=payload.guild_id,
            guild_name=payload.guild_name,
            message_id=payload.message_id,
        )
    if isinstance(payload, StatusPayload):
        return StatusRecord(
            status_value=payload.status_value,
            raw_client_status=(
                dict(payload.raw_client_status) if payload.raw_client_status is not None else None
            ),
        )
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def _record_to_payload(record: PresenceRecord | VoiceRecord | MessageRecord | StatusRecord) -> Payload:
    if isinstance(record, PresenceRecord):
        return PresencePayload(
            activities=tuple(
                Activity(
                    name=a.name,
                    kind=a.kind,
                    details=a.details,
                    state=a.state,
                    start_time=a.start_time,
                    end_time=a.end_time,
                )
                for a in record.activities
            )
        )
    if isinstance(record, VoiceRecord):
        return VoicePayload(
            channel_id=record.channel_id,
            channel_name=record.channel_name,
            transition=record.transition,
            guild_id=record.guild_id,
            guild_name=record.guild_name,
        )
    if isinstance(record, MessageRecord):
        return MessagePayload(
            content=record.content,
            channel_id=record.channel_id,
            channel_name=record.channel_name,
            guild_id=record.guild_id,
            guild_name=record.guild_name,
            message_id=record.message_id,
        )
    return StatusPayload(status_value=record.status_value, raw_client_status=record.raw_client_status)


def entry_to_record(entry: LogEntry) -> EntryRecord:
    return EntryRecord(
        subject_id=entry.subject_id,
        display_name=entry.display_name,
        timestamp=entry.timestamp,
        payload=_payload_to_record(entry.payload),
    )


def record_to_entry(record: EntryRecord) -> LogEntry:
    return LogEntry(
        subject_id=record.subject_id,
        display_name=record.display_name,
        timestamp=record.timestamp,
        payload=_record_to_payload(record.payload),
    )


def dump_logs(entries: Iterable[LogEntry], *, indent: int | None = 2) -> str:
    records = [entry_to_record(e) for e in entries]
    return LOGS_ADAPTER.dump_json(records, indent=indent).decode("utf-8")


def load_logs(text: str | bytes) -> list[LogEntry]:
    """Parse serialized logs; raises pydantic.ValidationError on bad input."""
    return [record_to_entry(r) for r in LOGS_ADAPTER.validate_json(text)]


def dump_tracked(subject_ids: Iterable[str]) -> str:
    return TRACKED_ADAPTER.dump_json(sorted(subject_ids)).decode("utf-8")


def load_tracked(text: str | bytes) -> set[str]:
    return set(TRACKED_ADAPTER.validate_json(text))


def log_entry_schema() -> dict[str, Any]:
    return EntryRecord.model_json_schema()

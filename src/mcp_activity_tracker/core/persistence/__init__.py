"""Persistence package."""

from __future__ import annotations

from .models import (
    EntryRecord,
    dump_logs,
    dump_tracked,
    entry_to_record,
    load_logs,
    load_tracked,
    log_entry_schema,
    record_to_entry,
)
from .store import JsonFileStore, MemoryStore, StateStore

__all__ = [
    "EntryRecord",
    "JsonFileStore",
    "MemoryStore",
    "StateStore",
    "dump_logs",
    "dump_tracked",
    "entry_to_record",
    "load_logs",
    "load_tracked",
    "log_entry_schema",
    "record_to_entry",
]

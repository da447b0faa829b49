"""Persistence collaborators.

The engine hands over already-serialized logs and tracked ids; how they are
stored is up to the store. Missing or unreadable state loads as ``(None, None)``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os
import aiofiles.tempfile

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateStore(Protocol):
    async def save(self, logs_json: str, tracked_json: str) -> None:
        ...

    async def load(self) -> tuple[str | None, str | None]:
        ...


class JsonFileStore:
    """Keep logs and tracked ids together in one JSON document on disk."""

    def __init__(self, path: str | Path, *, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.encoding = encoding
        # Saves from concurrent tool calls must not interleave.
        self._save_lock = asyncio.Lock()

    async def save(self, logs_json: str, tracked_json: str) -> None:
        doc = {
            "version": STATE_VERSION,
            "logs": json.loads(logs_json),
            "tracked_ids": json.loads(tracked_json),
        }
        text = json.dumps(doc, indent=2)
        async with self._save_lock:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
            async with aiofiles.tempfile.NamedTemporaryFile(
                "w",
                encoding=self.encoding,
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp = f.name
                await f.write(text)
            try:
                await aiofiles.os.replace(tmp, self.path)
            except OSError:
                await aiofiles.os.remove(tmp)
                raise
        logger.debug("Saved tracker state to %s", self.path)

    async def load(self) -> tuple[str | None, str | None]:
        if not await aiofiles.os.path.isfile(self.path):
            return None, None
        try:
            async with aiofiles.open(self.path, encoding=self.encoding, errors="replace") as f:
                doc = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read tracker state from %s: %s", self.path, exc)
            return None, None

        if not isinstance(doc, dict):
            logger.warning("Ignoring tracker state in %s: not a JSON object", self.path)
            return None, None

        logs = doc.get("logs")
        tracked = doc.get("tracked_ids")
        return (
            json.dumps(logs) if logs is not None else None,
            json.dumps(tracked) if tracked is not None else None,
        )


class MemoryStore:
    """Volatile store, handy for tests and for hosts without disk access."""

    def __init__(self, logs_json: str | None = None, tracked_json: str | None = None) -> None:
        self.logs_json = logs_json
        self.tracked_json = tracked_json

    async def save(self, logs_json: str, tracked_json: str) -> None:
        self.logs_json = logs_json
        self.tracked_json = tracked_json

    async def load(self) -> tuple[str | None, str | None]:
        return self.logs_json, self.tracked_json

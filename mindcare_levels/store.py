"""
Mood and settings storage for the MindCare level detection service.

This module provides in-memory stores for tests and ephemeral runs, and JSON
file stores that persist each collection as a single document keyed the way
the mobile app keys its local storage. Both satisfy the same async protocols,
so the detector can be handed either one.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from .models import MoodRecord, Settings, date_key_for

logger = logging.getLogger(__name__)

MOODS_FILE = "mindcare_moods.json"
SETTINGS_FILE = "mindcare_settings.json"


class StorageError(Exception):
    """Raised when a storage backend cannot read or write its data."""


# MARK: - Protocols


class MoodStore(Protocol):
    async def read_all(self) -> dict[str, MoodRecord]: ...

    async def read(self, date_key: str) -> MoodRecord | None: ...

    async def save(self, date_key: str, record: MoodRecord) -> MoodRecord: ...


class SettingsStore(Protocol):
    async def read(self) -> Settings: ...

    async def update(self, **changes: Any) -> Settings: ...


# MARK: - In-memory


class InMemoryMoodStore:
    """
    In-memory mood storage with one record per calendar day.

    Saving a record for a day that already has one replaces it. All
    operations are serialized through an asyncio lock.
    """

    def __init__(self, moods: dict[str, MoodRecord] | None = None) -> None:
        self._moods: dict[str, MoodRecord] = dict(moods or {})
        self._lock = asyncio.Lock()

    async def read_all(self) -> dict[str, MoodRecord]:
        """
        Get every stored mood record.

        Returns:
            A copy of the date key to record mapping, sorted by date
        """
        async with self._lock:
            return dict(sorted(self._moods.items()))

    async def read(self, date_key: str) -> MoodRecord | None:
        async with self._lock:
            return self._moods.get(date_key)

    async def save(self, date_key: str, record: MoodRecord) -> MoodRecord:
        """
        Insert or replace the mood record for a day.

        Args:
            date_key: Day in YYYY-MM-DD format
            record: The mood to store; a missing timestamp is set to now

        Returns:
            The stored record
        """
        if record.timestamp is None:
            record = record.model_copy(update={"timestamp": datetime.now()})
        async with self._lock:
            self._moods[date_key] = record
            return record


class InMemorySettingsStore:
    """In-memory settings with partial-update merge semantics."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()
        self._lock = asyncio.Lock()

    async def read(self) -> Settings:
        async with self._lock:
            return self._settings

    async def update(self, **changes: Any) -> Settings:
        """
        Merge the given fields into the stored settings.

        Returns:
            The updated Settings object
        """
        async with self._lock:
            merged = self._settings.model_dump() | changes
            self._settings = Settings.model_validate(merged)
            return self._settings


# MARK: - JSON files


def _load_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise StorageError(f"Could not read {path}: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(f"Expected a JSON object in {path}")
    return data


def _write_document(path: Path, data: dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        tmp.replace(path)
    except OSError as e:
        raise StorageError(f"Could not write {path}: {e}") from e


class JsonMoodStore:
    """Mood storage persisted as a single JSON object keyed by date."""

    def __init__(self, data_dir: Path) -> None:
        self.path = Path(data_dir) / MOODS_FILE
        self._lock = asyncio.Lock()

    async def _load(self) -> dict[str, MoodRecord]:
        raw = await asyncio.to_thread(_load_document, self.path)
        moods: dict[str, MoodRecord] = {}
        for date_key, entry in raw.items():
            try:
                moods[date_key] = MoodRecord.model_validate(entry)
            except ValidationError:
                logger.warning("Skipping invalid mood entry for %s", date_key)
        return moods

    async def read_all(self) -> dict[str, MoodRecord]:
        async with self._lock:
            return dict(sorted((await self._load()).items()))

    async def read(self, date_key: str) -> MoodRecord | None:
        async with self._lock:
            return (await self._load()).get(date_key)

    async def save(self, date_key: str, record: MoodRecord) -> MoodRecord:
        if record.timestamp is None:
            record = record.model_copy(update={"timestamp": datetime.now()})
        async with self._lock:
            moods = await self._load()
            moods[date_key] = record
            document = {k: v.model_dump(mode="json") for k, v in moods.items()}
            await asyncio.to_thread(_write_document, self.path, document)
            return record


class JsonSettingsStore:
    """Settings persisted as a JSON object, merged over the defaults on read."""

    def __init__(self, data_dir: Path) -> None:
        self.path = Path(data_dir) / SETTINGS_FILE
        self._lock = asyncio.Lock()

    async def _load(self) -> Settings:
        raw = await asyncio.to_thread(_load_document, self.path)
        try:
            return Settings.model_validate(raw)
        except ValidationError as e:
            raise StorageError(f"Invalid settings in {self.path}: {e}") from e

    async def read(self) -> Settings:
        async with self._lock:
            return await self._load()

    async def update(self, **changes: Any) -> Settings:
        """
        Merge the given fields into the stored settings and write them back.

        A stored document that cannot be read is replaced: the changes are
        merged over the default settings instead.
        """
        async with self._lock:
            try:
                current = await self._load()
            except StorageError as e:
                logger.warning("Resetting unreadable settings: %s", e)
                current = Settings()
            try:
                updated = Settings.model_validate(current.model_dump() | changes)
            except ValidationError as e:
                raise StorageError(f"Invalid settings update: {e}") from e
            await asyncio.to_thread(
                _write_document, self.path, updated.model_dump(mode="json")
            )
            return updated

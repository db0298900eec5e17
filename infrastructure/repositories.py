from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from backup import create_backup
from domain.errors import NotFoundError, PersistenceError
from domain.records import Expense, Income, Investment, Settings
from utils.payloads import parse_records, parse_settings, record_to_payload, settings_to_payload

from .locks import ReadWriteLock

logger = logging.getLogger(__name__)

T = TypeVar("T", Investment, Income, Expense)

Clock = Callable[[], datetime]

_LABELS = {"investments": "investment", "incomes": "income", "expenses": "expense"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat(timespec="microseconds")


def _new_id() -> str:
    return str(uuid.uuid4())


class _CorruptFile(Exception):
    pass


def _read_json(file_path: str) -> Any:
    """Return parsed JSON, or None if the file does not exist."""
    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise _CorruptFile(str(exc)) from exc


def _write_json(file_path: str, payload: Any) -> None:
    directory = os.path.dirname(file_path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".finance_", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, file_path)
    finally:
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            logger.exception("Failed to cleanup temporary file during save: %s", tmp_path)


def _quarantine(file_path: str, reason: str) -> None:
    backup_path = create_backup(file_path, label="corrupt")
    logger.warning(
        "Unreadable data file %s (%s); starting empty, original kept at %s",
        file_path,
        reason,
        backup_path,
    )


class CollectionRepository(ABC, Generic[T]):
    @abstractmethod
    def list(self) -> list[T]:
        """Snapshot of all records in insertion order."""
        pass

    @abstractmethod
    def get(self, record_id: str) -> T:
        """Return record by id or raise NotFoundError."""
        pass

    @abstractmethod
    def add(self, record: T) -> T:
        """Validate, assign id and timestamps, store and persist."""
        pass

    @abstractmethod
    def update(self, record_id: str, record: T) -> T:
        """Replace all fields except id and createdAt."""
        pass

    @abstractmethod
    def modify(self, record_id: str, changes: Callable[[T], T]) -> T:
        """Apply ``changes`` to the stored record in one critical section."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        pass

    @abstractmethod
    def replace_all(self, records: Iterable[T]) -> None:
        """Replace the whole collection."""
        pass


class SettingsRepository(ABC):
    @abstractmethod
    def get(self) -> Settings:
        pass

    @abstractmethod
    def set(self, settings: Settings) -> Settings:
        pass


class JsonFileCollectionRepository(CollectionRepository[T]):
    """One entity collection held in memory and mirrored to a JSON array file.

    Memory is authoritative. Every mutation holds the exclusive lock until
    the file write has finished, so writes to one file never interleave.
    """

    def __init__(
        self,
        file_path: str,
        kind: str,
        *,
        clock: Clock = utc_now,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        if kind not in _LABELS:
            raise ValueError(f"Unsupported collection: {kind}")
        self._file_path = file_path
        self._kind = kind
        self._label = _LABELS[kind]
        self._clock = clock
        self._id_factory = id_factory
        self._lock = ReadWriteLock()
        self._items: list[T] = self._load()

    @property
    def file_path(self) -> str:
        return self._file_path

    @property
    def kind(self) -> str:
        return self._kind

    def _load(self) -> list[T]:
        try:
            data = _read_json(self._file_path)
        except _CorruptFile as exc:
            _quarantine(self._file_path, str(exc))
            return []
        if data is None:
            return []
        if not isinstance(data, list):
            _quarantine(self._file_path, "root must be an array")
            return []
        records, errors = parse_records(self._kind, data)
        for error in errors:
            logger.warning("Skipping %s in %s", error, self._file_path)
        logger.info("Loaded %s %s from %s", len(records), self._kind, self._file_path)
        return records

    def _timestamp(self) -> str:
        return format_timestamp(self._clock())

    def _index_of(self, record_id: str) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == record_id:
                return index
        return None

    def _persist(self, result: Any = None) -> None:
        # Caller holds the write lock.
        payload = [record_to_payload(item) for item in self._items]
        try:
            _write_json(self._file_path, payload)
        except (OSError, TypeError, ValueError) as exc:
            logger.exception("Failed to persist %s to %s", self._kind, self._file_path)
            raise PersistenceError(exc, self._file_path, result) from exc

    def list(self) -> list[T]:
        with self._lock.read():
            return list(self._items)

    def get(self, record_id: str) -> T:
        with self._lock.read():
            index = self._index_of(record_id)
            if index is None:
                raise NotFoundError(record_id, self._label)
            return self._items[index]

    def add(self, record: T) -> T:
        record.validate()
        stamp = self._timestamp()
        created = replace(record, id=self._id_factory(), created_at=stamp, updated_at=stamp)
        with self._lock.write():
            self._items.append(created)
            self._persist(created)
        logger.info("%s created id=%s", self._label.capitalize(), created.id)
        return created

    def update(self, record_id: str, record: T) -> T:
        with self._lock.write():
            index = self._index_of(record_id)
            if index is None:
                raise NotFoundError(record_id, self._label)
            record.validate()
            original = self._items[index]
            updated = replace(
                record,
                id=original.id,
                created_at=original.created_at,
                updated_at=self._timestamp(),
            )
            self._items[index] = updated
            self._persist(updated)
        logger.info("%s updated id=%s", self._label.capitalize(), record_id)
        return updated

    def modify(self, record_id: str, changes: Callable[[T], T]) -> T:
        with self._lock.write():
            index = self._index_of(record_id)
            if index is None:
                raise NotFoundError(record_id, self._label)
            original = self._items[index]
            changed = changes(original)
            changed.validate()
            updated = replace(
                changed,
                id=original.id,
                created_at=original.created_at,
                updated_at=self._timestamp(),
            )
            self._items[index] = updated
            self._persist(updated)
        logger.info("%s modified id=%s", self._label.capitalize(), record_id)
        return updated

    def delete(self, record_id: str) -> None:
        with self._lock.write():
            index = self._index_of(record_id)
            if index is None:
                raise NotFoundError(record_id, self._label)
            del self._items[index]
            self._persist()
        logger.info("%s deleted id=%s", self._label.capitalize(), record_id)

    def replace_all(self, records: Iterable[T]) -> None:
        incoming = [
            record if record.id else replace(record, id=self._id_factory())
            for record in records
        ]
        with self._lock.write():
            self._items = incoming
            self._persist()
        logger.info("Replaced %s collection with %s records", self._kind, len(incoming))


class JsonFileSettingsRepository(SettingsRepository):
    """Singleton settings object mirrored to a JSON object file."""

    def __init__(self, file_path: str) -> None:
        self._file_path = file_path
        self._lock = ReadWriteLock()
        self._settings = self._load()

    @property
    def file_path(self) -> str:
        return self._file_path

    def _load(self) -> Settings:
        try:
            data = _read_json(self._file_path)
        except _CorruptFile as exc:
            _quarantine(self._file_path, str(exc))
            return Settings.defaults()
        if data is None:
            if os.path.exists(self._file_path):
                return Settings.defaults()
            settings = Settings.defaults()
            try:
                _write_json(self._file_path, settings_to_payload(settings))
                logger.info("Seeded default settings at %s", self._file_path)
            except OSError:
                logger.exception("Failed to seed default settings at %s", self._file_path)
            return settings
        if not isinstance(data, dict):
            _quarantine(self._file_path, "root must be an object")
            return Settings.defaults()
        return parse_settings(data)

    def get(self) -> Settings:
        with self._lock.read():
            return self._settings.copy()

    def set(self, settings: Settings) -> Settings:
        stored = settings.copy()
        with self._lock.write():
            self._settings = stored
            try:
                _write_json(self._file_path, settings_to_payload(stored))
            except (OSError, TypeError, ValueError) as exc:
                logger.exception("Failed to persist settings to %s", self._file_path)
                raise PersistenceError(exc, self._file_path, stored.copy()) from exc
        logger.info("Settings updated")
        return stored.copy()

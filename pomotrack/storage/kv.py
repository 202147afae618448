"""Key-value store with JSON values, error reporting and a memory fallback.

Values are JSON-encoded and written to the ``kv_store`` table.  When the
database cannot be reached (read-only filesystem, full disk, locked file)
the value is kept in an in-process dict instead so callers never branch on
availability.  Every failure is classified into a :class:`StorageError` and
published to ``on_error`` subscribers, which the UI may turn into a
"using temporary storage" banner.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..observers import Subscribers, Unsubscribe
from .db import Database
from .models import KeyValue

T = TypeVar("T")

# Fixed keys used by the settings and statistics layers.
SETTINGS_KEY = "pomodoro_settings"
STATISTICS_KEY = "pomodoro_statistics"

_STORAGE_FAILURES = (SQLAlchemyError, OSError)


class StorageErrorType(str, Enum):
    QUOTA_EXCEEDED = "quota_exceeded"
    ACCESS_DENIED = "access_denied"
    PARSE_ERROR = "parse_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StorageError:
    type: StorageErrorType
    message: str
    key: Optional[str] = None


def classify_error(error: BaseException, key: Optional[str] = None) -> StorageError:
    """Map an exception raised by the medium or the codec to a StorageError."""
    text = str(error).lower()
    if isinstance(error, json.JSONDecodeError):
        return StorageError(
            StorageErrorType.PARSE_ERROR,
            "Failed to parse stored data. Using default values.",
            key,
        )
    if "quota" in text or "disk is full" in text or "database is full" in text:
        return StorageError(
            StorageErrorType.QUOTA_EXCEEDED,
            "Storage quota exceeded. Some data may not be saved.",
            key,
        )
    if any(
        marker in text
        for marker in ("readonly", "read-only", "permission", "access", "denied", "unable to open")
    ):
        return StorageError(
            StorageErrorType.ACCESS_DENIED,
            "Storage access denied. Using temporary storage.",
            key,
        )
    return StorageError(StorageErrorType.UNKNOWN, f"Storage error: {error}", key)


class KeyValueStore:
    """``get``/``set``/``remove`` over a :class:`Database` with fallback.

    Pass ``database=None`` for a purely in-memory store.
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger("pomotrack.storage")
        self._db = database
        self._memory: dict[str, str] = {}
        self._pruners: dict[str, list[Callable[[Any], Any]]] = {}
        self._error_handlers = Subscribers("storage error", logger=self._logger)
        self._using_fallback = database is None

        if self._db is not None:
            try:
                self._db.init()
            except _STORAGE_FAILURES as error:
                self._using_fallback = True
                self._report(error)

    # ── subscriptions ─────────────────────────────────────────────────

    def on_error(self, handler: Callable[[StorageError], None]) -> Unsubscribe:
        return self._error_handlers.add(handler)

    def add_pruner(self, key: str, prune: Callable[[Any], Any]) -> Unsubscribe:
        """Register a function that shrinks the value stored under *key*.

        Pruners run once when a write fails with ``quota_exceeded``; each
        receives the decoded value and returns the trimmed replacement.
        """
        self._pruners.setdefault(key, []).append(prune)

        def unsubscribe() -> None:
            prunes = self._pruners.get(key, [])
            if prune in prunes:
                prunes.remove(prune)

        return unsubscribe

    def is_using_fallback(self) -> bool:
        return self._using_fallback

    # ── public API ────────────────────────────────────────────────────

    def get(self, key: str, default: T) -> T:
        """Return the stored value for *key*, or *default*."""
        try:
            # A key still in memory is newer than anything in the database:
            # successful database writes evict it.
            raw = self._memory.get(key)
            if raw is None and self._db is not None:
                raw = self._read_primary(key)
            if raw is None:
                return default
            return json.loads(raw)
        except (json.JSONDecodeError, *_STORAGE_FAILURES) as error:
            self._logger.error("Error reading from storage (key: %s): %s", key, error)
            self._report(error, key)
            return default

    def set(self, key: str, value: Any) -> bool:
        """Store *value*; ``False`` only when not even memory could take it."""
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as error:
            self._logger.error("Cannot serialize value for key %s: %s", key, error)
            self._report(error, key)
            return False

        if self._db is None:
            self._memory[key] = serialized
            return True

        try:
            self._write_primary(key, serialized)
            return True
        except _STORAGE_FAILURES as error:
            self._logger.error("Error writing to storage (key: %s): %s", key, error)
            storage_error = self._report(error, key)

        if storage_error.type is StorageErrorType.QUOTA_EXCEEDED:
            self._prune()
            try:
                self._write_primary(key, serialized)
                return True
            except _STORAGE_FAILURES as error:
                self._logger.error("Failed to save even after cleanup: %s", error)

        self._using_fallback = True
        self._memory[key] = serialized
        self._logger.warning("Using temporary in-memory storage for key %s", key)
        return True

    def remove(self, key: str) -> bool:
        self._memory.pop(key, None)
        if self._db is None:
            return True
        try:
            with self._db.session() as db:
                record = db.get(KeyValue, key)
                if record is not None:
                    db.delete(record)
            return True
        except _STORAGE_FAILURES as error:
            self._logger.error("Error removing from storage (key: %s): %s", key, error)
            self._report(error, key)
            return False

    def clear(self) -> bool:
        self._memory.clear()
        if self._db is None:
            return True
        try:
            with self._db.session() as db:
                db.query(KeyValue).delete()
            return True
        except _STORAGE_FAILURES as error:
            self._logger.error("Error clearing storage: %s", error)
            self._report(error)
            return False

    # ── internal ──────────────────────────────────────────────────────

    def _read_primary(self, key: str) -> Optional[str]:
        with self._db.session() as db:
            record = db.get(KeyValue, key)
            return None if record is None else record.value

    def _write_primary(self, key: str, serialized: str) -> None:
        with self._db.session() as db:
            record = db.get(KeyValue, key)
            if record is None:
                db.add(KeyValue(key=key, value=serialized))
            else:
                record.value = serialized
        self._memory.pop(key, None)
        self._using_fallback = False

    def _prune(self) -> None:
        """Shrink registered keys in place.  Unparseable values are dropped."""
        for key, prunes in self._pruners.items():
            if not prunes:
                continue
            try:
                raw = self._read_primary(key)
                if raw is None:
                    continue
                try:
                    value = json.loads(raw)
                except json.JSONDecodeError:
                    self.remove(key)
                    continue
                for prune in list(prunes):
                    value = prune(value)
                self._write_primary(key, json.dumps(value))
            except Exception:
                self._logger.exception("Error pruning storage key %s", key)

    def _report(self, error: BaseException, key: Optional[str] = None) -> StorageError:
        storage_error = classify_error(error, key)
        self._error_handlers.notify(storage_error)
        return storage_error

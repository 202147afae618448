"""Storage package."""

from .db import Database, default_data_dir, default_db_url
from .kv import (
    KeyValueStore,
    StorageError,
    StorageErrorType,
    classify_error,
    SETTINGS_KEY,
    STATISTICS_KEY,
)
from .models import KeyValue

__all__ = [
    "Database",
    "default_data_dir",
    "default_db_url",
    "KeyValueStore",
    "StorageError",
    "StorageErrorType",
    "classify_error",
    "SETTINGS_KEY",
    "STATISTICS_KEY",
    "KeyValue",
]

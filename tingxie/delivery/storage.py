"""
Key-value storage backends for Tingxie.

The engine keeps all durable state under a handful of string keys in a
single shared namespace. Values are JSON text.

Backends:
- SQLiteStorage: portable on-disk store (~/.tingxie/state.db)
- MemoryStorage: process-local store for tests and ephemeral runs

Backends raise StorageError; the read/write helpers below convert those
into StorageResult values so callers never see an exception.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from loguru import logger

T = TypeVar("T")


# =============================================================================
# Errors & Results
# =============================================================================


class StorageError(Exception):
    """A storage read, write or delete failed."""

    def __init__(self, key: str, operation: str, reason: str):
        super().__init__(f"{operation} {key!r} failed: {reason}")
        self.key = key
        self.operation = operation
        self.reason = reason


@dataclass(frozen=True)
class StorageResult(Generic[T]):
    """
    Outcome of a storage call.

    On failure ``error`` is set and ``value`` holds the fallback the engine
    continues with (defaults for reads, None for writes).
    """

    value: T | None = None
    error: StorageError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# Backends
# =============================================================================


class KeyValueStorage(Protocol):
    """Minimal string key-value store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """Dictionary-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self.data)


class SQLiteStorage:
    """
    SQLite-backed key-value store.

    One table, ``kv(key TEXT PRIMARY KEY, value TEXT)``. The connection is
    shared with the debounce timer thread, so access is serialized.
    """

    DEFAULT_DB_PATH = Path.home() / ".tingxie" / "state.db"

    def __init__(self, db_path: Path | None = None):
        """
        Initialize the store.

        Args:
            db_path: Custom database path (defaults to ~/.tingxie/state.db)
        """
        self.db_path = db_path or self.DEFAULT_DB_PATH
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_schema()
        except (OSError, sqlite3.Error) as e:
            self.close()
            raise StorageError(str(self.db_path), "open", str(e)) from e

        logger.info(f"SQLiteStorage initialized at {self.db_path}")

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        return self._conn

    def _init_schema(self) -> None:
        with self._lock:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            self.conn.commit()

    def get(self, key: str) -> str | None:
        try:
            with self._lock:
                row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(key, "read", str(e)) from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._lock:
                self.conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                """,
                    (key, value),
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(key, "write", str(e)) from e

    def delete(self, key: str) -> None:
        try:
            with self._lock:
                self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(key, "delete", str(e)) from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None


# =============================================================================
# Safe Helpers
# =============================================================================


def read_json(storage: KeyValueStorage, key: str, default: Any) -> StorageResult[Any]:
    """Read and decode a JSON value, falling back to ``default`` on any failure."""
    try:
        raw = storage.get(key)
    except StorageError as e:
        logger.warning(f"Storage unavailable, using defaults: {e}")
        return StorageResult(value=default, error=e)

    if raw is None:
        return StorageResult(value=default)

    try:
        return StorageResult(value=json.loads(raw))
    except json.JSONDecodeError as e:
        error = StorageError(key, "read", f"corrupt JSON: {e}")
        logger.warning(str(error))
        return StorageResult(value=default, error=error)


def write_text(storage: KeyValueStorage, key: str, text: str) -> StorageResult[None]:
    """Write an already-encoded value."""
    try:
        storage.set(key, text)
    except StorageError as e:
        logger.warning(f"Save failed, continuing in memory: {e}")
        return StorageResult(error=e)
    return StorageResult()


def write_json(storage: KeyValueStorage, key: str, value: Any) -> StorageResult[None]:
    return write_text(storage, key, json.dumps(value, ensure_ascii=False))


def remove_key(storage: KeyValueStorage, key: str) -> StorageResult[None]:
    try:
        storage.delete(key)
    except StorageError as e:
        logger.warning(f"Remove failed: {e}")
        return StorageResult(error=e)
    return StorageResult()

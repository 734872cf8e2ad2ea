"""
Durable key-value storage for the Book Loan Tracker.

The catalog store only needs what browser local storage offers: read a
string by key, write a string under a key, remove a key. Two backends
implement that contract:

1. SQLiteKeyValueStorage - one SQLite file, accessed through SQLAlchemy
2. MemoryKeyValueStorage - a dict, for tests and throwaway sessions

Both enforce a per-value byte quota and report every failure as a
StorageError, so callers only ever handle one exception family.
"""

import logging
from abc import ABC, abstractmethod

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..config import DEFAULT_QUOTA_BYTES
from ..exceptions import StorageError, StorageQuotaExceededError
from .schema import StorageEntry
from .session import DatabaseManager

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """
    Abstract string key-value store with a per-value quota.

    Subclasses implement the ``_read``/``_write``/``_remove``/``_clear``
    primitives; quota checks and error wrapping live here.
    """

    def __init__(self, quota_bytes: int | None = DEFAULT_QUOTA_BYTES):
        self.quota_bytes = quota_bytes

    @abstractmethod
    def _read(self, key: str) -> str | None: ...

    @abstractmethod
    def _write(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _remove(self, key: str) -> None: ...

    @abstractmethod
    def _clear(self) -> None: ...

    def get_item(self, key: str) -> str | None:
        """
        Read the value stored under ``key``.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        return self._read(key)

    def set_item(self, key: str, value: str) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value.

        Raises:
            StorageQuotaExceededError: If the encoded value exceeds the quota
            StorageError: If the backend cannot be written
        """
        if not isinstance(value, str):
            raise TypeError(f"Storage values must be strings, got {type(value).__name__}")

        size = len(value.encode("utf-8"))
        if self.quota_bytes is not None and size > self.quota_bytes:
            raise StorageQuotaExceededError(key, size, self.quota_bytes)

        self._write(key, value)
        logger.debug("Stored %d bytes under '%s'", size, key)

    def remove_item(self, key: str) -> None:
        """Remove ``key``; removing an absent key is not an error."""
        self._remove(key)

    def clear(self) -> None:
        """Remove every key."""
        self._clear()


class MemoryKeyValueStorage(KeyValueStorage):
    """Key-value storage kept in a dict for the life of the process."""

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        quota_bytes: int | None = DEFAULT_QUOTA_BYTES,
    ):
        super().__init__(quota_bytes=quota_bytes)
        self._items: dict[str, str] = dict(initial or {})

    def _read(self, key: str) -> str | None:
        return self._items.get(key)

    def _write(self, key: str, value: str) -> None:
        self._items[key] = value

    def _remove(self, key: str) -> None:
        self._items.pop(key, None)

    def _clear(self) -> None:
        self._items.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)


class SQLiteKeyValueStorage(KeyValueStorage):
    """
    Key-value storage persisted in a SQLite file.

    The table is created on construction. SQLAlchemy errors are re-raised
    as StorageError with the original exception chained.
    """

    def __init__(
        self,
        database_url: str | None = None,
        quota_bytes: int | None = DEFAULT_QUOTA_BYTES,
        db_manager: DatabaseManager | None = None,
    ):
        super().__init__(quota_bytes=quota_bytes)
        self.db_manager = db_manager or DatabaseManager(database_url)
        try:
            self.db_manager.init_database()
        except SQLAlchemyError as e:
            raise StorageError(f"Storage initialization failed: {e!s}") from e

    def _read(self, key: str) -> str | None:
        try:
            with self.db_manager.session_scope() as session:
                entry = session.execute(
                    select(StorageEntry).where(StorageEntry.key == key)
                ).scalar_one_or_none()
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read '{key}': {e!s}") from e

    def _write(self, key: str, value: str) -> None:
        try:
            with self.db_manager.session_scope() as session:
                entry = session.get(StorageEntry, key)
                if entry is None:
                    session.add(StorageEntry(key=key, value=value))
                else:
                    entry.value = value
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write '{key}': {e!s}") from e

    def _remove(self, key: str) -> None:
        try:
            with self.db_manager.session_scope() as session:
                session.execute(delete(StorageEntry).where(StorageEntry.key == key))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to remove '{key}': {e!s}") from e

    def _clear(self) -> None:
        try:
            with self.db_manager.session_scope() as session:
                session.execute(delete(StorageEntry))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to clear storage: {e!s}") from e

    def close(self) -> None:
        """Dispose of the underlying engine."""
        self.db_manager.close()

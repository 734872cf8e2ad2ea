"""
Storage package for the Book Loan Tracker.

This package provides:
- The key-value storage contract and its backends (key_value.py)
- The SQLAlchemy schema of the SQLite backend (schema.py)
- Session management and connection handling (session.py)
"""

from .key_value import KeyValueStorage, MemoryKeyValueStorage, SQLiteKeyValueStorage
from .schema import Base, StorageEntry
from .session import DatabaseManager

__all__ = [
    "Base",
    "DatabaseManager",
    "KeyValueStorage",
    "MemoryKeyValueStorage",
    "SQLiteKeyValueStorage",
    "StorageEntry",
]

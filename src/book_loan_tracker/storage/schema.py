"""
SQLAlchemy schema for the durable key-value store.

The tracker persists its state the way a browser persists local storage:
one row per key, the value an opaque string. The book collection lives
under a single key as a JSON array.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Base class for all SQLAlchemy models
Base = declarative_base()


class StorageEntry(Base):
    """
    Key-value table - one serialized value per key.

    Rows are written whole on every save; there is no partial update.
    """

    __tablename__ = "local_storage"

    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)

    # Timestamps for tracking changes
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<StorageEntry(key='{self.key}', size={len(self.value or '')})>"

"""
Database session management for the durable key-value store.

This module provides connection management and session handling for
SQLAlchemy. Sessions are short-lived: every storage read or write opens a
session, commits or rolls back, and closes it.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .schema import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Manages the storage database connection and sessions.

    This class provides:
    - Lazy engine creation
    - Session factory with explicit transactions
    - Schema creation on first use
    """

    def __init__(self, database_url: str | None = None):
        """
        Initialize the database manager.

        Args:
            database_url: SQLAlchemy database URL. If None, uses the configured
                storage file.
        """
        if database_url is None:
            db_path = get_config().storage_path

            if not db_path.is_absolute():
                db_path = Path.cwd() / db_path

            db_path.parent.mkdir(exist_ok=True, parents=True)

            database_url = f"sqlite:///{db_path}"
            logger.info("Using SQLite storage at: %s", db_path)

        self.database_url = database_url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        """
        Get or create the database engine.

        SQLite engines use a StaticPool so that in-memory databases survive
        between sessions and file databases are not locked by stray
        connections.
        """
        if self._engine is None:
            self._engine = create_engine(
                self.database_url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
                echo=False,
            )
            logger.info("Storage engine created: %s", self._engine.url)

        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_session(self) -> Session:
        """Create a new database session."""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope for storage operations.

        ```python
        with db_manager.session_scope() as session:
            entry = session.get(StorageEntry, "books")
        # Session is automatically committed or rolled back
        ```

        Raises:
            Any database errors are logged and re-raised
        """
        session = self.create_session()
        try:
            yield session
            session.commit()
            logger.debug("Storage transaction committed successfully")
        except Exception:
            logger.exception("Storage error, rolling back")
            session.rollback()
            raise
        finally:
            session.close()

    def init_database(self) -> None:
        """Create the storage table if it does not exist."""
        Base.metadata.create_all(bind=self.engine)
        logger.debug("Storage schema ready")

    def verify_connection(self) -> bool:
        """
        Verify the database connection is working.

        Returns:
            True if connection is successful, False otherwise
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Storage connection verified")
            return True
        except Exception:
            logger.exception("Storage connection failed")
            return False

    def close(self) -> None:
        """Close the database connection and cleanup resources."""
        if self._engine:
            self._engine.dispose()
            logger.info("Storage engine disposed")
        self._engine = None
        self._session_factory = None

"""Test configuration and fixtures for the Book Loan Tracker.

1. Isolated storage - each test gets an empty in-memory store or its own
   SQLite file
2. Configuration overrides - test-specific settings, global config reset
3. Sample catalog - a small set of books, one of them on loan
4. Deterministic time - a fixed clock for loan timestamps
"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from book_loan_tracker.catalog import CatalogStore
from book_loan_tracker.config import TrackerConfig, reset_config
from book_loan_tracker.models import Book, LoanInfo
from book_loan_tracker.storage import MemoryKeyValueStorage, SQLiteKeyValueStorage

FIXED_NOW_MS = 1_700_000_000_000


# === Storage Fixtures ===


@pytest.fixture
def memory_storage() -> MemoryKeyValueStorage:
    """Provide an empty in-memory key-value store."""
    return MemoryKeyValueStorage()


@pytest.fixture
def test_storage_path(tmp_path: Path) -> Generator[Path, None, None]:
    """Provide a temporary SQLite file path for each test."""
    db_path = tmp_path / "test_storage.db"
    yield db_path

    if db_path.exists():
        db_path.unlink()


@pytest.fixture
def sqlite_storage(test_storage_path: Path) -> Generator[SQLiteKeyValueStorage, None, None]:
    """Provide a SQLite-backed key-value store in a temporary file."""
    storage = SQLiteKeyValueStorage(f"sqlite:///{test_storage_path}")
    yield storage
    storage.close()


# === Configuration Fixtures ===


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Provide an environment without BOOK_TRACKER_* variables."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("BOOK_TRACKER_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def test_config(test_storage_path: Path, clean_env) -> Generator[TrackerConfig, None, None]:
    """Provide a test-specific configuration."""
    reset_config()

    config = TrackerConfig(
        storage_path=test_storage_path,
        storage_key="test-books",
        debug=True,
        log_level="DEBUG",
    )

    yield config

    reset_config()


# === Catalog Fixtures ===


def make_sample_books() -> list[Book]:
    """Three books from two publishers; the last one is on loan."""
    return [
        Book(
            id="book1",
            title="Securing DevOps",
            author="Julien Vehent",
            publisher="Manning",
            publication_year=2018,
            pages=384,
            price="$26.98",
            language="English",
        ),
        Book(
            id="book2",
            title="Practical MongoDB",
            author="Shakuntala Gupta Edward",
            publisher="Apress",
            publication_year=2015,
            pages=288,
            price="$32.04",
            language="English",
        ),
        Book(
            id="book3",
            title="Elixir in Action",
            author="Sasa Juric",
            publisher="Manning",
            publication_year=2015,
            pages=376,
            loaned=True,
            loan_info=LoanInfo(borrower="Sam", loan_period=1, timestamp=1000),
        ),
    ]


@pytest.fixture
def sample_books() -> list[Book]:
    return make_sample_books()


@pytest.fixture
def store(memory_storage: MemoryKeyValueStorage) -> CatalogStore:
    """Provide a loaded catalog store seeded with the sample books."""
    catalog = CatalogStore(memory_storage, seed_loader=make_sample_books)
    catalog.load()
    return catalog


@pytest.fixture
def fixed_clock():
    """Provide a clock frozen at FIXED_NOW_MS."""
    return lambda: FIXED_NOW_MS

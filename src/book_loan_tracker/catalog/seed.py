"""
Seed data loading.

The seed list is consumed once, on a first run with no usable snapshot, to
build the initial catalog. Every entry gets a fresh id and starts
unselected and available.
"""

import logging
from importlib import resources
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from ..models import Book, SeedBook

logger = logging.getLogger(__name__)

_seed_list = TypeAdapter(list[SeedBook])


def read_seed_text(seed_path: Path | None = None) -> str:
    """Return the raw seed JSON, from ``seed_path`` or the packaged list."""
    if seed_path is not None:
        return Path(seed_path).read_text(encoding="utf-8")
    return resources.files("book_loan_tracker").joinpath("data/books.json").read_text(
        encoding="utf-8"
    )


def parse_seed(raw: str) -> list[Book]:
    """
    Convert a seed JSON array into Books.

    Raises:
        ValidationError: If the text is not a JSON array of seed entries
    """
    return [entry.to_book() for entry in _seed_list.validate_json(raw)]


def load_seed_books(seed_path: Path | None = None) -> list[Book]:
    """
    Load the seed list as new Books.

    A missing or malformed seed file is logged and yields an empty catalog;
    it never stops the tracker from starting.
    """
    try:
        books = parse_seed(read_seed_text(seed_path))
    except (OSError, ValidationError):
        logger.exception("Failed to load seed books from %s", seed_path or "package data")
        return []

    logger.info("Loaded %d seed books", len(books))
    return books

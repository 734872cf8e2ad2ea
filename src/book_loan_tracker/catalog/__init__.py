"""
Catalog package: the book collection and its seed data.
"""

from .seed import load_seed_books, parse_seed
from .store import CatalogStore, parse_snapshot, serialize_snapshot

__all__ = [
    "CatalogStore",
    "load_seed_books",
    "parse_seed",
    "parse_snapshot",
    "serialize_snapshot",
]

"""
Book Loan Tracker Package.

This package implements a single-user book inventory and loan tracker:
books are cataloged, selected, edited and deleted, and lent out to
borrowers for a number of weeks. The whole collection is persisted to a
durable key-value store after every change.

Key Components:
- models: Pydantic models for books, loan info and loan records
- storage: Durable key-value storage (SQLite via SQLAlchemy, or in memory)
- catalog: The catalog store (source of truth for books) and seed data
- loans: The loan coordinator (availability, reconciliation, submission)
- config: Configuration management with Pydantic v2
- app: Top-level application state (dialog, filter, loan page)
"""

__version__ = "0.1.0"

from .app import LibraryApp, ViewMode, ViewState, create_app
from .catalog import CatalogStore
from .exceptions import (
    DeleteRejectedError,
    EditRejectedError,
    LoanRejectedError,
    OperationRejectedError,
    StorageError,
    StorageQuotaExceededError,
    TrackerException,
)
from .loans import LoanCoordinator

__all__ = [
    "CatalogStore",
    "DeleteRejectedError",
    "EditRejectedError",
    "LibraryApp",
    "LoanCoordinator",
    "LoanRejectedError",
    "OperationRejectedError",
    "StorageError",
    "StorageQuotaExceededError",
    "TrackerException",
    "ViewMode",
    "ViewState",
    "__version__",
    "create_app",
]

"""Book Loan Tracker - Application State

This module holds the state a user interface reads and drives, with no
rendering of its own:

- The add/edit dialog as an explicit view state (closed, adding, editing a
  given book) instead of an imperatively shown modal
- The key the dialog form is mounted under, which changes whenever the edit
  target changes so the form starts clean
- The publisher filter applied to the visible book list
- The loan page, whose session loan records live only while it is open
- Hints explaining why edit or delete is unavailable

It also provides the logging setup and the ``create_app`` factory that wires
configuration, storage and the catalog store together.
"""

import enum
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

from .catalog import CatalogStore, load_seed_books
from .config import TrackerConfig, get_config
from .exceptions import DeleteRejectedError
from .loans import LoanCoordinator
from .models import Book, BookCreate, BookUpdate
from .storage import KeyValueStorage, SQLiteKeyValueStorage

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: TrackerConfig | None = None) -> None:
    """Send log records to stderr at the configured level."""
    config = config or get_config()
    logging.basicConfig(
        level=config.effective_log_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    # basicConfig is a no-op once handlers exist; the level still follows config
    logging.getLogger().setLevel(config.effective_log_level)
    if config.debug:
        logger.debug("Debug mode enabled - verbose logging active")


class ViewMode(str, enum.Enum):
    """State of the add/edit dialog."""

    CLOSED = "closed"
    ADD = "add"
    EDIT = "edit"


@dataclass(frozen=True)
class ViewState:
    """Dialog mode plus the book being edited, if any."""

    mode: ViewMode = ViewMode.CLOSED
    book_id: str | None = None

    @classmethod
    def closed(cls) -> "ViewState":
        return cls()

    @classmethod
    def adding(cls) -> "ViewState":
        return cls(mode=ViewMode.ADD)

    @classmethod
    def editing(cls, book_id: str) -> "ViewState":
        return cls(mode=ViewMode.EDIT, book_id=book_id)


class LibraryApp:
    """
    Top-level coordinator between the catalog store and the screens.

    All book changes go through the store; this class only owns screen
    state (dialog, filter, loan page).
    """

    def __init__(self, store: CatalogStore, config: TrackerConfig | None = None):
        self.store = store
        self.config = config or get_config()
        self.view = ViewState.closed()
        self.dialog_key = 0
        self.publisher_filter = ""
        self._loan_page: LoanCoordinator | None = None

    # ------------------------- Book list ------------------------- #

    @property
    def publishers(self) -> list[str]:
        return self.store.publishers

    def set_publisher_filter(self, publisher: str | None) -> None:
        """Show only books from ``publisher``; empty shows all."""
        self.publisher_filter = publisher or ""

    @property
    def visible_books(self) -> list[Book]:
        return self.store.filter_by_publisher(self.publisher_filter)

    def select(self, book_id: str) -> None:
        self.store.toggle_select(book_id)

    @property
    def edit_hint(self) -> str:
        """Why the edit action is disabled, or an empty string."""
        if self.store.can_edit:
            return ""
        if self.store.has_selected_loaned:
            return "Cannot edit a book that is on loan"
        return "Select one book to edit"

    @property
    def delete_hint(self) -> str:
        """Why the delete action is disabled, or an empty string."""
        if self.store.can_delete:
            return ""
        if self.store.has_selected_loaned:
            return "Cannot delete book that is on loan"
        return "Select book to delete"

    def handle_delete_click(self) -> list[Book]:
        """
        Delete the selected books.

        Raises:
            DeleteRejectedError: If nothing is selected or a selected book is
                on loan
        """
        if not self.store.can_delete:
            raise DeleteRejectedError(self.delete_hint)
        return self.store.delete_selected()

    # ------------------------- Add/edit dialog ------------------------- #

    @property
    def form_key(self) -> str:
        """Key for the dialog form; changes whenever the edit target changes."""
        if self.view.mode is ViewMode.EDIT and self.view.book_id:
            return self.view.book_id
        return str(self.dialog_key)

    @property
    def editing_book(self) -> Book | None:
        return self.store.editing_book

    def open_add_dialog(self) -> None:
        self.store.cancel_edit()
        self.view = ViewState.adding()

    def handle_edit_click(self) -> Book:
        """
        Open the dialog on the selected book.

        Raises:
            EditRejectedError: If the selection cannot be edited; the view is
                left unchanged
        """
        book = self.store.begin_edit()
        self.view = ViewState.editing(book.id)
        return book

    def submit_form(self, fields: Mapping[str, Any]) -> Book | None:
        """
        Save the dialog form: edit the target book, or add a new one.

        The dialog closes after a successful save.
        """
        if self.view.mode is ViewMode.EDIT and self.view.book_id:
            result = self.store.edit(BookUpdate.model_validate({**fields, "id": self.view.book_id}))
        else:
            result = self.store.add(BookCreate.model_validate(fields))
        self.close_dialog()
        return result

    def close_dialog(self) -> None:
        """Close the dialog and force a fresh form next time it opens."""
        self.store.cancel_edit()
        self.view = ViewState.closed()
        self.dialog_key += 1

    # ------------------------- Loan page ------------------------- #

    @property
    def loan_page(self) -> LoanCoordinator | None:
        return self._loan_page

    @property
    def showing_loan_page(self) -> bool:
        return self._loan_page is not None

    def open_loan_page(self) -> LoanCoordinator:
        """Show the loan page with an empty session."""
        self._loan_page = LoanCoordinator(
            lambda: self.store.books,
            on_loan=self.store.apply_loan,
            min_weeks=self.config.min_loan_weeks,
            max_weeks=self.config.max_loan_weeks,
        )
        return self._loan_page

    def close_loan_page(self) -> None:
        """Go back to the book list; session loan records are discarded."""
        self._loan_page = None


def create_app(
    config: TrackerConfig | None = None,
    storage: KeyValueStorage | None = None,
) -> LibraryApp:
    """
    Build a ready-to-use application.

    Args:
        config: Configuration (global configuration if None)
        storage: Storage backend (SQLite file from config if None)
    """
    config = config or get_config()
    if storage is None:
        storage = SQLiteKeyValueStorage(
            config.get_storage_url(), quota_bytes=config.storage_quota_bytes
        )

    store = CatalogStore(
        storage,
        storage_key=config.storage_key,
        seed_loader=partial(load_seed_books, config.seed_path),
    )
    store.load()
    logger.info("%s started with %d books", config.app_name, len(store))
    return LibraryApp(store, config)

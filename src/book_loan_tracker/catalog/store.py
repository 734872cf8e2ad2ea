"""
Catalog store for the Book Loan Tracker.

The catalog store owns the authoritative list of books. Every change goes
through one of its operations, and every committed change is persisted to
the durable key-value store before listeners are notified:

1. **Source of truth**: the only writer of ``selected``, ``loaned`` and
   ``loan_info``; collaborators get read-only views
2. **Persistence**: the whole collection is written under one key after each
   mutation; a failed write is logged and the in-memory state stays
   authoritative until the next successful write
3. **Authorization**: selection-derived rules (can edit, can delete) are
   recomputed on every read, never stored
"""

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import TypeAdapter

from ..exceptions import EditRejectedError, StorageError
from ..models import Book, BookCreate, BookUpdate, LoanInfo, LoanRecord, generate_book_id
from ..storage import KeyValueStorage
from .seed import load_seed_books

logger = logging.getLogger(__name__)

CatalogListener = Callable[[list[Book]], None]

_book_list = TypeAdapter(list[Book])


def parse_snapshot(raw: str) -> list[Book]:
    """
    Parse a persisted snapshot into Books.

    Raises:
        ValueError: If the text is not valid JSON, not an array, or holds an
            invalid book record (pydantic's ValidationError is a ValueError)
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"Snapshot must be a JSON array, got {type(data).__name__}")
    return _book_list.validate_python(data)


def serialize_snapshot(books: list[Book]) -> str:
    """Serialize Books into the persisted snapshot format."""
    return json.dumps([book.to_storage() for book in books])


class CatalogStore:
    """
    Owns the book collection, the selection and the edit target.

    Typical lifecycle:

    ```python
    store = CatalogStore(SQLiteKeyValueStorage())
    store.load()
    book = store.add({"bookTitle": "Dune", "bookAuthor": "Frank Herbert"})
    store.toggle_select(book.id)
    if store.can_delete:
        store.delete_selected()
    ```
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = "books",
        seed_loader: Callable[[], list[Book]] | None = None,
    ):
        self.storage = storage
        self.storage_key = storage_key
        self._seed_loader = seed_loader or load_seed_books
        self._books: list[Book] = []
        self._listeners: list[CatalogListener] = []
        self.editing_book_id: str | None = None

    # ------------------------- Persistence ------------------------- #

    def load(self) -> list[Book]:
        """
        Restore the collection from storage, falling back to seed data.

        A missing snapshot, a storage read failure and an unparseable
        snapshot all fall back to the seed list. The resulting collection is
        written back once so seed ids stay stable across sessions.
        """
        books: list[Book] | None = None
        try:
            raw = self.storage.get_item(self.storage_key)
            if raw:
                books = parse_snapshot(raw)
                logger.info("Loaded %d books from storage key '%s'", len(books), self.storage_key)
            else:
                logger.info("No saved books under '%s', using seed data", self.storage_key)
        except (StorageError, ValueError):
            logger.exception("Failed to load books from storage, using seed data")

        if books is None:
            books = self._seed_loader()

        self._books = list(books)
        self.editing_book_id = None
        self.persist()
        return self.books

    def persist(self) -> bool:
        """
        Write the full collection to storage.

        Returns:
            True if the write succeeded, False if it failed and was logged
        """
        try:
            self.storage.set_item(self.storage_key, serialize_snapshot(self._books))
        except (StorageError, TypeError, ValueError):
            logger.exception("Failed to save books to storage")
            return False
        return True

    def subscribe(self, listener: CatalogListener) -> Callable[[], None]:
        """
        Register a listener called with the book list after every commit.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self) -> None:
        """Persist, then notify listeners of the committed state."""
        self.persist()
        books = self.books
        for listener in list(self._listeners):
            try:
                listener(books)
            except Exception:
                logger.exception("Catalog listener %r failed", listener)

    # ------------------------- Queries ------------------------- #

    @property
    def books(self) -> list[Book]:
        """A copy of the collection, in catalog order."""
        return list(self._books)

    def __len__(self) -> int:
        return len(self._books)

    def get(self, book_id: str) -> Book | None:
        """Return the book with ``book_id``, or None."""
        index = self._index_of(book_id)
        return self._books[index] if index is not None else None

    def _index_of(self, book_id: str | None) -> int | None:
        for index, book in enumerate(self._books):
            if book.id == book_id:
                return index
        return None

    def filter_by_publisher(self, publisher: str | None) -> list[Book]:
        """Books from ``publisher``; an empty filter matches every book."""
        if not publisher:
            return self.books
        return [book for book in self._books if book.publisher == publisher]

    @property
    def publishers(self) -> list[str]:
        """Distinct non-empty publishers, in first-seen order."""
        return list(dict.fromkeys(book.publisher for book in self._books if book.publisher))

    @property
    def selected_books(self) -> list[Book]:
        return [book for book in self._books if book.selected]

    @property
    def has_selected_loaned(self) -> bool:
        return any(book.loaned for book in self.selected_books)

    @property
    def can_edit(self) -> bool:
        """Exactly one book selected and it is not on loan."""
        return len(self.selected_books) == 1 and not self.has_selected_loaned

    @property
    def can_delete(self) -> bool:
        """At least one book selected and none of them on loan."""
        return len(self.selected_books) > 0 and not self.has_selected_loaned

    @property
    def editing_book(self) -> Book | None:
        return self.get(self.editing_book_id) if self.editing_book_id else None

    # ------------------------- Mutations ------------------------- #

    def add(self, fields: BookCreate | Mapping[str, Any]) -> Book:
        """
        Append a new book with a fresh id, unselected.

        Duplicates by title or author are allowed.

        Raises:
            ValidationError: If the title or author is missing or blank
        """
        data = fields if isinstance(fields, BookCreate) else BookCreate.model_validate(fields)
        book = Book(**data.model_dump(), id=generate_book_id(), selected=False)
        self._books.append(book)
        logger.debug("Added book %s (%s)", book.id, book.title)
        self._commit()
        return book

    def begin_edit(self) -> Book:
        """
        Make the single selected book the edit target.

        Raises:
            EditRejectedError: If zero or several books are selected, or the
                selected book is on loan. The edit target is left unchanged.
        """
        selected = self.selected_books
        if not selected:
            raise EditRejectedError("Please select a book to edit.")
        if len(selected) > 1:
            raise EditRejectedError("Please select only one book to edit.")
        if selected[0].loaned:
            raise EditRejectedError("Cannot edit a book that is on loan.")

        self.editing_book_id = selected[0].id
        return selected[0]

    def cancel_edit(self) -> None:
        self.editing_book_id = None

    def edit(self, update: BookUpdate | Mapping[str, Any]) -> Book | None:
        """
        Merge the supplied fields onto the book with the same id.

        Omitted fields keep their values. Selection and loan state cannot be
        changed here. An unknown id is ignored. The edit target is cleared
        either way.
        """
        data = update if isinstance(update, BookUpdate) else BookUpdate.model_validate(update)
        self.editing_book_id = None

        index = self._index_of(data.id)
        if index is None:
            return None

        updated = self._books[index].model_copy(update=data.changes())
        self._books[index] = updated
        logger.debug("Edited book %s: %s", updated.id, sorted(data.changes()))
        self._commit()
        return updated

    def toggle_select(self, book_id: str) -> None:
        """
        Flip the selection of ``book_id`` and clear every other selection.

        Selecting the selected book clears the selection entirely.
        """
        self._books = [
            book.model_copy(update={"selected": (not book.selected) if book.id == book_id else False})
            for book in self._books
        ]
        self._commit()

    def delete_selected(self) -> list[Book]:
        """
        Remove every selected book, loaned or not.

        Callers check ``can_delete`` first; this operation does not.

        Returns:
            The removed books
        """
        removed = [book for book in self._books if book.selected]
        if not removed:
            return []

        self._books = [book for book in self._books if not book.selected]
        if self.editing_book_id in {book.id for book in removed}:
            self.editing_book_id = None

        logger.debug("Deleted %d books", len(removed))
        self._commit()
        return removed

    def apply_loan(self, record: LoanRecord | Mapping[str, Any] | None) -> Book | None:
        """
        Mark a book as loaned with the record's borrower, period and timestamp.

        A record without a book id, or for a book no longer in the catalog,
        is ignored.
        """
        if isinstance(record, LoanRecord):
            book_id = record.book_id
            info = record.to_loan_info()
        else:
            record = record or {}
            book_id = record.get("bookId") or record.get("book_id")
            if not book_id:
                return None
            info = LoanInfo.model_validate(record)

        index = self._index_of(book_id)
        if index is None:
            return None

        loaned = self._books[index].model_copy(update={"loaned": True, "loan_info": info})
        self._books[index] = loaned
        logger.info("Book %s loaned to %s for %d weeks", book_id, info.borrower, info.loan_period)
        self._commit()
        return loaned

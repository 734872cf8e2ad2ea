"""
Tests for the catalog store.

These tests cover:
1. Loading from a snapshot and falling back to seed data
2. Persistence after every mutation, and soft failure of writes
3. Add, edit, selection, deletion and loan application
4. The derived authorization rules (can edit, can delete)
"""

import json
import random

import pytest
from pydantic import ValidationError

from book_loan_tracker.catalog import CatalogStore, parse_snapshot, serialize_snapshot
from book_loan_tracker.exceptions import EditRejectedError, StorageError
from book_loan_tracker.models import Book, BookUpdate, LoanInfo, LoanRecord
from book_loan_tracker.storage import MemoryKeyValueStorage

from .conftest import make_sample_books


class FailingStorage(MemoryKeyValueStorage):
    """Storage whose reads and/or writes fail."""

    def __init__(self, fail_reads=False, fail_writes=False, **kwargs):
        super().__init__(**kwargs)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def _read(self, key):
        if self.fail_reads:
            raise StorageError("read failed")
        return super()._read(key)

    def _write(self, key, value):
        if self.fail_writes:
            raise StorageError("write failed")
        super()._write(key, value)


def saved_books(storage, key="books"):
    return parse_snapshot(storage.get_item(key))


class TestLoad:
    """Startup: snapshot first, seed data as fallback."""

    def test_load_from_snapshot(self, memory_storage, sample_books):
        memory_storage.set_item("books", serialize_snapshot(sample_books))
        seed_calls = []
        store = CatalogStore(memory_storage, seed_loader=lambda: seed_calls.append(1) or [])

        books = store.load()

        assert books == sample_books
        assert seed_calls == []

    def test_load_normalizes_selected(self, memory_storage):
        memory_storage.set_item(
            "books",
            json.dumps(
                [
                    {"id": "a", "bookTitle": "A", "selected": 1},
                    {"id": "b", "bookTitle": "B", "selected": None},
                    {"id": "c", "bookTitle": "C"},
                ]
            ),
        )
        store = CatalogStore(memory_storage, seed_loader=list)

        books = store.load()

        assert [book.selected for book in books] == [True, False, False]

    def test_missing_snapshot_uses_seed(self, memory_storage):
        store = CatalogStore(memory_storage, seed_loader=make_sample_books)

        books = store.load()

        assert [book.id for book in books] == ["book1", "book2", "book3"]

    def test_seed_is_persisted(self, memory_storage):
        """Seed ids are written back so they stay stable across sessions."""
        store = CatalogStore(memory_storage, seed_loader=make_sample_books)
        store.load()

        assert [book.id for book in saved_books(memory_storage)] == ["book1", "book2", "book3"]

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            '{"id": "a"}',
            '[{"id": "a", "loaned": true}]',
            '[{"id": "a", "pages": "many"}]',
        ],
    )
    def test_unparseable_snapshot_uses_seed(self, memory_storage, raw, caplog):
        memory_storage.set_item("books", raw)
        store = CatalogStore(memory_storage, seed_loader=make_sample_books)

        books = store.load()

        assert len(books) == 3
        assert "Failed to load books from storage" in caplog.text

    def test_blank_pages_keeps_saved_books(self, memory_storage):
        """A blank number field does not discard the saved catalog."""
        memory_storage.set_item(
            "books", '[{"id": "mine", "bookTitle": "Dune", "bookAuthor": "Frank Herbert", "pages": ""}]'
        )
        store = CatalogStore(memory_storage, seed_loader=make_sample_books)

        books = store.load()

        assert [book.id for book in books] == ["mine"]
        assert books[0].pages is None
        assert [book.id for book in saved_books(memory_storage)] == ["mine"]

    def test_empty_snapshot_uses_seed(self, memory_storage):
        memory_storage.set_item("books", "")
        store = CatalogStore(memory_storage, seed_loader=make_sample_books)

        assert len(store.load()) == 3

    def test_read_failure_uses_seed(self):
        storage = FailingStorage(fail_reads=True)
        store = CatalogStore(storage, seed_loader=make_sample_books)

        assert len(store.load()) == 3

    def test_custom_storage_key(self, memory_storage, sample_books):
        memory_storage.set_item("shelf", serialize_snapshot(sample_books[:1]))
        store = CatalogStore(memory_storage, storage_key="shelf", seed_loader=list)

        assert [book.id for book in store.load()] == ["book1"]


class TestPersist:
    """Every committed mutation is written; failed writes are logged only."""

    def test_round_trip(self, store, memory_storage):
        """Persist then reload yields the same collection."""
        store.toggle_select("book2")
        store.add({"bookTitle": "New", "bookAuthor": "Someone", "publisher": "Ace"})

        reloaded = CatalogStore(memory_storage, seed_loader=list)
        reloaded.load()

        assert reloaded.books == store.books

    def test_each_mutation_persists(self, store, memory_storage):
        store.toggle_select("book1")
        assert saved_books(memory_storage)[0].selected is True

        store.edit({"id": "book1", "bookPrice": "$1.00"})
        assert saved_books(memory_storage)[0].price == "$1.00"

        store.apply_loan({"bookId": "book2", "borrower": "Ana", "loanPeriod": 2, "timestamp": 7})
        assert saved_books(memory_storage)[1].loaned is True

        store.delete_selected()
        assert [book.id for book in saved_books(memory_storage)] == ["book2", "book3"]

    def test_write_failure_does_not_break_mutation(self, caplog):
        storage = FailingStorage(fail_writes=True)
        store = CatalogStore(storage, seed_loader=make_sample_books)
        store.load()

        book = store.add({"bookTitle": "New", "bookAuthor": "Someone"})

        assert store.get(book.id) == book
        assert store.persist() is False
        assert "Failed to save books to storage" in caplog.text

    def test_quota_exceeded_is_soft(self, sample_books):
        storage = MemoryKeyValueStorage(quota_bytes=50)
        store = CatalogStore(storage, seed_loader=lambda: sample_books)

        store.load()
        store.toggle_select("book1")

        assert store.selected_books[0].id == "book1"
        assert storage.get_item("books") is None

    def test_persist_returns_true_on_success(self, store):
        assert store.persist() is True


class TestListeners:
    def test_listener_called_after_commit(self, store, memory_storage):
        seen = []

        def listener(books):
            seen.append((len(books), saved_books(memory_storage) == books))

        store.subscribe(listener)
        store.toggle_select("book1")

        assert seen == [(3, True)]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()

        store.toggle_select("book1")

        assert seen == []

    def test_failing_listener_is_logged(self, store, caplog):
        def broken(_books):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.toggle_select("book1")

        assert store.selected_books[0].id == "book1"
        assert "Catalog listener" in caplog.text


class TestAdd:
    def test_add_assigns_id_and_appends(self, store):
        book = store.add(
            {"bookTitle": "Dune", "bookAuthor": "Frank Herbert", "publisher": "Ace", "pages": 412}
        )

        assert store.books[-1] == book
        assert book.selected is False
        assert book.loaned is False
        assert book.pages == 412
        assert book.id not in {"book1", "book2", "book3"}

    def test_blank_pages_accepted(self, store):
        book = store.add({"bookTitle": "Dune", "bookAuthor": "Frank Herbert", "pages": ""})

        assert book.pages is None
        assert store.get(book.id) == book

    def test_duplicates_allowed(self, store):
        first = store.add({"bookTitle": "Dune", "bookAuthor": "Frank Herbert"})
        second = store.add({"bookTitle": "Dune", "bookAuthor": "Frank Herbert"})

        assert first.id != second.id
        assert len(store) == 5

    def test_supplied_id_and_flags_ignored(self, store):
        book = store.add(
            {"bookTitle": "Dune", "bookAuthor": "F", "id": "book1", "selected": True}
        )

        assert book.id != "book1"
        assert book.selected is False

    def test_missing_required_fields_rejected(self, store):
        with pytest.raises(ValidationError):
            store.add({"bookTitle": "No author"})

        assert len(store) == 3

    def test_thousand_adds_have_distinct_ids(self, memory_storage):
        store = CatalogStore(memory_storage, seed_loader=list)
        store.load()

        for i in range(1000):
            store.add({"bookTitle": f"Book {i}", "bookAuthor": "Author"})

        assert len({book.id for book in store.books}) == 1000


class TestEdit:
    def test_edit_merges_supplied_fields(self, store):
        updated = store.edit({"id": "book1", "bookTitle": "Securing DevOps, 2nd ed."})

        assert updated.title == "Securing DevOps, 2nd ed."
        assert updated.author == "Julien Vehent"
        assert updated.pages == 384

    def test_edit_leaves_other_books_untouched(self, store):
        before = store.books

        store.edit(BookUpdate(id="book2", price="$1.00"))

        after = store.books
        assert after[0] == before[0]
        assert after[2] == before[2]
        assert after[1].price == "$1.00"

    def test_edit_clears_edit_target(self, store):
        store.toggle_select("book1")
        store.begin_edit()

        store.edit({"id": "book1", "pages": 400})

        assert store.editing_book_id is None

    def test_edit_unknown_id_is_noop(self, store):
        before = store.books

        assert store.edit({"id": "gone", "bookTitle": "X"}) is None
        assert store.books == before

    def test_edit_cannot_change_loan_state(self, store):
        updated = store.edit({"id": "book3", "loaned": False, "bookTitle": "Elixir"})

        assert updated.loaned is True
        assert updated.loan_info is not None


class TestToggleSelect:
    def test_select_one(self, store):
        store.toggle_select("book2")

        assert [book.selected for book in store.books] == [False, True, False]

    def test_toggle_selected_clears_selection(self, store):
        store.toggle_select("book2")
        store.toggle_select("book2")

        assert store.selected_books == []

    def test_select_other_moves_selection(self, store):
        store.toggle_select("book1")
        store.toggle_select("book3")

        assert [book.id for book in store.selected_books] == ["book3"]

    def test_unknown_id_clears_selection(self, store):
        store.toggle_select("book1")
        store.toggle_select("gone")

        assert store.selected_books == []

    def test_at_most_one_selected_after_any_sequence(self, store):
        rng = random.Random(7)
        ids = ["book1", "book2", "book3", "gone"]

        for _ in range(200):
            store.toggle_select(rng.choice(ids))
            assert len(store.selected_books) <= 1

    def test_clears_multiple_selection_from_snapshot(self, memory_storage):
        memory_storage.set_item(
            "books",
            json.dumps([{"id": i, "bookTitle": i, "selected": True} for i in ("a", "b", "c")]),
        )
        store = CatalogStore(memory_storage, seed_loader=list)
        store.load()

        store.toggle_select("b")

        assert [book.selected for book in store.books] == [False, False, False]


class TestDeleteSelected:
    def test_removes_exactly_selected(self, store):
        before = store.books
        store.toggle_select("book2")

        removed = store.delete_selected()

        assert [book.id for book in removed] == ["book2"]
        assert store.books == [before[0], before[2]]

    def test_nothing_selected_is_noop(self, store):
        assert store.delete_selected() == []
        assert len(store) == 3

    def test_deletes_loaned_book_when_called(self, store):
        """Authorization is the caller's job."""
        store.toggle_select("book3")

        store.delete_selected()

        assert store.get("book3") is None

    def test_deletes_every_selected_book(self, memory_storage):
        memory_storage.set_item(
            "books",
            json.dumps(
                [
                    {"id": "a", "bookTitle": "A", "selected": True},
                    {"id": "b", "bookTitle": "B"},
                    {"id": "c", "bookTitle": "C", "selected": True},
                    {"id": "d", "bookTitle": "D"},
                ]
            ),
        )
        store = CatalogStore(memory_storage, seed_loader=list)
        store.load()

        store.delete_selected()

        assert [book.id for book in store.books] == ["b", "d"]


class TestApplyLoan:
    def test_apply_loan(self, store):
        before = store.books

        loaned = store.apply_loan(
            {"bookId": "book1", "borrower": "Ana", "loanPeriod": 2, "timestamp": 123}
        )

        assert loaned.loaned is True
        assert loaned.loan_info == LoanInfo(borrower="Ana", loan_period=2, timestamp=123)
        assert store.books[1:] == before[1:]

    def test_apply_loan_record(self, store):
        record = LoanRecord(book_id="book2", borrower="Lee", loan_period=3, timestamp=5000)

        store.apply_loan(record)

        assert store.get("book2").loan_info.borrower == "Lee"

    def test_unknown_book_is_noop(self, store, memory_storage):
        before = store.books

        result = store.apply_loan(
            {"bookId": "gone", "borrower": "Ana", "loanPeriod": 2, "timestamp": 1}
        )

        assert result is None
        assert store.books == before

    @pytest.mark.parametrize("record", [None, {}, {"borrower": "Ana"}])
    def test_missing_book_id_is_noop(self, store, record):
        assert store.apply_loan(record) is None


class TestAuthorization:
    """can_edit / can_delete / begin_edit rules."""

    def test_nothing_selected(self, store):
        assert store.can_edit is False
        assert store.can_delete is False
        assert store.has_selected_loaned is False

    def test_available_book_selected(self, store):
        store.toggle_select("book1")

        assert store.can_edit is True
        assert store.can_delete is True

    def test_loaned_book_selected(self, store):
        store.toggle_select("book3")

        assert store.has_selected_loaned is True
        assert store.can_edit is False
        assert store.can_delete is False

    def test_multiple_selected_cannot_edit(self, memory_storage):
        memory_storage.set_item(
            "books",
            json.dumps([{"id": i, "bookTitle": i, "selected": True} for i in ("a", "b")]),
        )
        store = CatalogStore(memory_storage, seed_loader=list)
        store.load()

        assert store.can_edit is False
        assert store.can_delete is True
        with pytest.raises(EditRejectedError, match="only one"):
            store.begin_edit()
        assert store.editing_book_id is None

    def test_begin_edit_without_selection(self, store):
        with pytest.raises(EditRejectedError, match="select a book"):
            store.begin_edit()
        assert store.editing_book_id is None

    def test_begin_edit_loaned(self, store):
        store.toggle_select("book3")

        with pytest.raises(EditRejectedError, match="on loan"):
            store.begin_edit()
        assert store.editing_book_id is None

    def test_begin_edit_sets_target(self, store):
        store.toggle_select("book2")

        book = store.begin_edit()

        assert book.id == "book2"
        assert store.editing_book == book

        store.cancel_edit()
        assert store.editing_book is None


class TestPublishers:
    def test_distinct_first_seen_order(self, store):
        store.add({"bookTitle": "X", "bookAuthor": "Y", "publisher": "Ace"})
        store.add({"bookTitle": "Z", "bookAuthor": "Y", "publisher": ""})

        assert store.publishers == ["Manning", "Apress", "Ace"]

    def test_filter_by_publisher(self, store):
        assert [book.id for book in store.filter_by_publisher("Manning")] == ["book1", "book3"]
        assert len(store.filter_by_publisher("")) == 3
        assert store.filter_by_publisher("Nobody") == []


class TestSnapshotHelpers:
    def test_serialize_snapshot_is_json_array(self, sample_books):
        data = json.loads(serialize_snapshot(sample_books))

        assert [entry["id"] for entry in data] == ["book1", "book2", "book3"]
        assert data[2]["loanInfo"] == {"borrower": "Sam", "loanPeriod": 1, "timestamp": 1000}

    def test_parse_snapshot_rejects_object(self):
        with pytest.raises(ValueError, match="JSON array"):
            parse_snapshot('{"id": "a"}')

    def test_parse_snapshot_returns_books(self):
        books = parse_snapshot('[{"id": "a", "bookTitle": "A"}]')
        assert books == [Book(id="a", title="A")]

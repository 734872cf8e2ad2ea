"""
Loan coordinator for the Book Loan Tracker.

The coordinator backs the loan page. It never writes to a Book: it keeps
the loans submitted during the current session, combines them with the
loan state the catalog already holds, and asks the catalog store to apply
each new loan through a callback.

Reconciliation is a last-write-wins merge keyed by book id. Loaned books
from the catalog are entered first, then session records in submission
order, so a session record always replaces an older entry for the same
book.
"""

import logging
import time
from collections.abc import Callable, Iterable, Sequence

from ..exceptions import LoanRejectedError
from ..models import Book, LoanRecord, ReconciledLoan, compute_due_date

logger = logging.getLogger(__name__)

BooksProvider = Callable[[], Sequence[Book]]
LoanCallback = Callable[[LoanRecord], object]

__all__ = [
    "LoanCoordinator",
    "available_books",
    "compute_due_date",
    "now_ms",
    "reconcile_loans",
]


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def available_books(books: Iterable[Book], session_records: Iterable[LoanRecord]) -> list[Book]:
    """
    Books that can still be lent out.

    A book is unavailable if the catalog has it on loan or any session
    record references it, even if the catalog has not applied that loan yet.
    """
    books = list(books)
    loaned_ids = {book.id for book in books if book.loaned}
    loaned_ids.update(record.book_id for record in session_records)
    return [book for book in books if book.id not in loaned_ids]


def reconcile_loans(
    books: Iterable[Book], session_records: Iterable[LoanRecord]
) -> list[ReconciledLoan]:
    """
    One display entry per book currently on loan.

    Catalog loans come first, in catalog order; session records then
    overwrite or extend them in submission order. A session record for a
    book that is no longer in the catalog gets no title.
    """
    books = list(books)
    titles = {book.id: book.title for book in books}
    loans: dict[str, ReconciledLoan] = {}

    for book in books:
        if not book.loaned:
            continue
        info = book.loan_info
        loans[book.id] = ReconciledLoan(
            book_id=book.id,
            borrower=info.borrower if info else None,
            loan_period=info.loan_period if info else None,
            timestamp=info.timestamp if info else None,
            book_title=book.title,
        )

    for record in session_records:
        loans[record.book_id] = ReconciledLoan(
            book_id=record.book_id,
            borrower=record.borrower,
            loan_period=record.loan_period,
            timestamp=record.timestamp,
            book_title=titles.get(record.book_id),
        )

    return list(loans.values())


class LoanCoordinator:
    """
    Session state of the loan page.

    Args:
        books_provider: Returns the current catalog (read only)
        on_loan: Called with each new LoanRecord, usually
            ``CatalogStore.apply_loan``
        clock: Returns the current time in milliseconds
        min_weeks: Shortest accepted loan period
        max_weeks: Longest accepted loan period
    """

    def __init__(
        self,
        books_provider: BooksProvider,
        on_loan: LoanCallback | None = None,
        clock: Callable[[], int] = now_ms,
        min_weeks: int = 1,
        max_weeks: int = 4,
    ):
        if max_weeks < min_weeks:
            raise ValueError("max_weeks cannot be less than min_weeks")
        self._books_provider = books_provider
        self._on_loan = on_loan
        self._clock = clock
        self.min_weeks = min_weeks
        self.max_weeks = max_weeks
        self._records: list[LoanRecord] = []

    @property
    def records(self) -> tuple[LoanRecord, ...]:
        """Loans submitted this session, in submission order."""
        return tuple(self._records)

    @property
    def available_books(self) -> list[Book]:
        return available_books(self._books_provider(), self._records)

    @property
    def has_available_books(self) -> bool:
        return bool(self.available_books)

    @property
    def reconciled_loans(self) -> list[ReconciledLoan]:
        return reconcile_loans(self._books_provider(), self._records)

    def clamp_loan_period(self, loan_period: object) -> int:
        """
        Coerce ``loan_period`` to an integer inside the accepted range.

        Raises:
            LoanRejectedError: If the value is not a whole number
        """
        if isinstance(loan_period, bool):
            raise LoanRejectedError("Loan period must be a whole number of weeks.")
        try:
            weeks = int(loan_period)  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError) as e:
            raise LoanRejectedError("Loan period must be a whole number of weeks.") from e
        if isinstance(loan_period, float) and loan_period != weeks:
            raise LoanRejectedError("Loan period must be a whole number of weeks.")

        clamped = max(self.min_weeks, min(self.max_weeks, weeks))
        if clamped != weeks:
            logger.warning(
                "Loan period %d is outside %d-%d weeks, using %d",
                weeks,
                self.min_weeks,
                self.max_weeks,
                clamped,
            )
        return clamped

    def submit_loan(self, borrower: str, book_id: str, loan_period: object = 1) -> LoanRecord:
        """
        Record a new loan and ask the catalog to apply it.

        The record is kept even if the callback fails, so the loan page stays
        consistent with what the user submitted.

        Raises:
            LoanRejectedError: If the book or borrower is missing, the book is
                not available, or the loan period is not a whole number. No
                record is added.
        """
        if not book_id:
            raise LoanRejectedError("Please select a book.")
        if not borrower or not borrower.strip():
            raise LoanRejectedError("Please enter a borrower name.")
        if book_id not in {book.id for book in self.available_books}:
            raise LoanRejectedError("Please select an available book.")
        weeks = self.clamp_loan_period(loan_period)

        record = LoanRecord(
            book_id=book_id,
            borrower=borrower,
            loan_period=weeks,
            timestamp=self._clock(),
        )
        self._records.append(record)
        logger.debug("Loan submitted for book %s", book_id)

        if self._on_loan is not None:
            try:
                self._on_loan(record)
            except Exception:
                logger.exception("Loan callback failed for book %s", book_id)

        return record

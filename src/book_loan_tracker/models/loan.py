"""
Loan models for the Book Loan Tracker.

- LoanRecord: a loan submitted during the current session. It is not
  persisted on its own; the catalog store folds it into the Book's
  ``loan_info`` when the loan is applied.
- ReconciledLoan: the display entry for one book currently on loan, built
  from persisted loan info and session records (latest wins).
"""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from .book import LoanInfo

MS_PER_WEEK = 7 * 24 * 60 * 60 * 1000


def compute_due_date(timestamp: int | None, loan_period: int | None) -> datetime | None:
    """
    Compute when a loan is due.

    Args:
        timestamp: Loan creation time in milliseconds since the epoch
        loan_period: Loan period in weeks

    Returns:
        Aware UTC datetime of ``timestamp + loan_period weeks``, or None when
        either value is missing
    """
    if not timestamp or not loan_period:
        return None
    due_ms = timestamp + loan_period * MS_PER_WEEK
    return datetime(1970, 1, 1, tzinfo=UTC) + timedelta(milliseconds=due_ms)


class LoanRecord(BaseModel):
    """A loan submitted during the current session."""

    book_id: str = Field(
        ...,
        alias="bookId",
        description="Identifier of the loaned book",
        min_length=1,
    )

    borrower: str = Field(
        ...,
        description="Name of the person borrowing the book",
        min_length=1,
    )

    loan_period: int = Field(
        ...,
        alias="loanPeriod",
        description="Loan period in weeks",
    )

    timestamp: int = Field(
        ...,
        description="Submission time in milliseconds since the epoch",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_loan_info(self) -> LoanInfo:
        """Return the loan info embedded in the Book once the loan is applied."""
        return LoanInfo(
            borrower=self.borrower,
            loan_period=self.loan_period,
            timestamp=self.timestamp,
        )


class ReconciledLoan(BaseModel):
    """One book currently on loan, as shown in the loan list."""

    book_id: str = Field(..., alias="bookId")
    borrower: str | None = None
    loan_period: int | None = Field(None, alias="loanPeriod")
    timestamp: int | None = None
    book_title: str | None = Field(None, alias="bookTitle")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def due_date(self) -> datetime | None:
        """Due date, or None when the timestamp or period is unknown."""
        return compute_due_date(self.timestamp, self.loan_period)

    @property
    def due_date_label(self) -> str:
        """Due date as an ISO date, or ``"unknown"``."""
        due = self.due_date
        return due.date().isoformat() if due else "unknown"

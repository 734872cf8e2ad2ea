"""
Loans package: availability, reconciliation and submission of loans.
"""

from .coordinator import (
    LoanCoordinator,
    available_books,
    compute_due_date,
    now_ms,
    reconcile_loans,
)

__all__ = [
    "LoanCoordinator",
    "available_books",
    "compute_due_date",
    "now_ms",
    "reconcile_loans",
]

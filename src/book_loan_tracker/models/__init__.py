"""
Book Loan Tracker Models.

Pydantic models for the core entities:

- Book: A catalog entry with display fields, selection and loan state
- LoanInfo: Loan details embedded in a loaned Book
- BookCreate / BookUpdate: Fields accepted by add and edit
- LoanRecord: A loan submitted during the current session
- ReconciledLoan: The display entry for one book on loan
- SeedBook: One entry of the static seed list
"""

from .book import Book, BookCreate, BookFields, BookUpdate, LoanInfo, generate_book_id
from .loan import MS_PER_WEEK, LoanRecord, ReconciledLoan, compute_due_date
from .seed import SeedBook

__all__ = [
    "MS_PER_WEEK",
    "Book",
    "BookCreate",
    "BookFields",
    "BookUpdate",
    "LoanInfo",
    "LoanRecord",
    "ReconciledLoan",
    "SeedBook",
    "compute_due_date",
    "generate_book_id",
]

"""
Exception hierarchy for the Book Loan Tracker.

Two families of errors exist:

1. Storage errors - the durable key-value store could not be read or
   written. These are always recovered from: the catalog store logs them
   and keeps its in-memory state authoritative.
2. Rejected operations - the user asked for a transition the current state
   does not allow (editing nothing, deleting a loaned book, lending without
   a borrower). These carry a human-readable message and guarantee that no
   state was changed.
"""


class TrackerException(Exception):
    """Base exception for the Book Loan Tracker."""


class StorageError(TrackerException):
    """Raised when the durable storage backend fails."""


class StorageQuotaExceededError(StorageError):
    """Raised when a value does not fit in the storage quota."""

    def __init__(self, key: str, size: int, quota: int):
        super().__init__(f"Value for '{key}' is {size} bytes, quota is {quota} bytes")
        self.key = key
        self.size = size
        self.quota = quota


class OperationRejectedError(TrackerException):
    """Raised when a requested operation is not allowed in the current state."""


class EditRejectedError(OperationRejectedError):
    """Raised when edit mode cannot be entered."""


class DeleteRejectedError(OperationRejectedError):
    """Raised when the current selection cannot be deleted."""


class LoanRejectedError(OperationRejectedError):
    """Raised when a loan submission is incomplete or invalid."""

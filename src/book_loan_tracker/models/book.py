"""
Book model for the Book Loan Tracker.

A Book is one entry of the catalog: bibliographic display fields, the
transient selection flag and the loan state. Books are persisted as a JSON
array under a single storage key, using the camelCase keys of the
browser snapshot (``bookTitle``, ``imgSrc``, ``loanInfo`` ...). Python code
uses the snake_case attribute names; both are accepted on input.

The loan state follows one rule: ``loan_info`` is present if and only if
``loaned`` is true.
"""

from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def generate_book_id() -> str:
    """Return a new opaque book identifier."""
    return uuid4().hex


class LoanInfo(BaseModel):
    """Loan details embedded in a loaned Book."""

    borrower: str = Field(
        ...,
        description="Name of the person borrowing the book",
        examples=["Ana", "Sam"],
    )

    loan_period: int = Field(
        ...,
        alias="loanPeriod",
        description="Loan period in weeks",
        examples=[1, 4],
    )

    timestamp: int = Field(
        ...,
        description="When the loan was created, in milliseconds since the epoch",
        examples=[1700000000000],
    )

    model_config = ConfigDict(populate_by_name=True)


class BookFields(BaseModel):
    """Bibliographic display fields shared by books and book forms."""

    img_src: str | None = Field(None, alias="imgSrc", description="Cover image reference")
    img_alt: str | None = Field(None, alias="imgAlt", description="Alt text for the cover image")
    book_link: str | None = Field(None, alias="bookLink", description="External link for the book")
    title: str | None = Field(None, alias="bookTitle", description="Title of the book")
    price: float | str | None = Field(None, alias="bookPrice", description="Price as given")
    author: str | None = Field(None, alias="bookAuthor", description="Author of the book")
    publisher: str | None = Field(None, description="Publisher name, used for filtering")
    publication_year: int | str | None = Field(
        None, alias="publication", description="Year of publication"
    )
    pages: int | None = Field(None, description="Page count", ge=0)
    language: str | None = Field(None, description="Language of the book")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("pages", mode="before")
    @classmethod
    def blank_pages_to_none(cls, v: Any) -> Any:
        """An empty number input arrives as a blank string."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Book(BookFields):
    """
    Represents a book in the catalog.

    Only the catalog store creates and replaces Book instances; everything
    else reads them.
    """

    id: str = Field(
        default_factory=generate_book_id,
        description="Opaque unique identifier, stable for the life of the record",
    )

    selected: bool = Field(
        default=False,
        description="Whether the book is the current selection",
    )

    loaned: bool = Field(
        default=False,
        description="Whether the book is currently on loan",
    )

    loan_info: LoanInfo | None = Field(
        None,
        alias="loanInfo",
        description="Borrower, period and timestamp of the current loan",
    )

    @field_validator("selected", "loaned", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        """Treat any falsy or missing value as False and anything else as True."""
        return bool(v)

    @model_validator(mode="after")
    def validate_loan_state(self) -> "Book":
        """Ensure loan_info exists exactly when the book is loaned."""
        if self.loaned and self.loan_info is None:
            raise ValueError("A loaned book must carry loan info")
        if not self.loaned and self.loan_info is not None:
            raise ValueError("Loan info is only allowed on a loaned book")
        return self

    @property
    def is_available(self) -> bool:
        """Check if the book can be lent out."""
        return not self.loaned

    def to_storage(self) -> dict[str, Any]:
        """Serialize to the persisted snapshot format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3f1c2a9e0b7d4c5e8f6a1b2c3d4e5f60",
                "imgSrc": "https://covers.example.com/gatsby.jpg",
                "imgAlt": "The Great Gatsby",
                "bookLink": "https://example.com/books/gatsby",
                "bookTitle": "The Great Gatsby",
                "bookPrice": "$10.99",
                "bookAuthor": "F. Scott Fitzgerald",
                "publisher": "Scribner",
                "publication": 1925,
                "pages": 180,
                "language": "English",
                "selected": False,
                "loaned": True,
                "loanInfo": {"borrower": "Ana", "loanPeriod": 2, "timestamp": 1700000000000},
            }
        },
    )


class BookCreate(BookFields):
    """Fields accepted when adding a book; title and author are required."""

    title: str = Field(..., alias="bookTitle", min_length=1)
    author: str = Field(..., alias="bookAuthor", min_length=1)

    @field_validator("title", "author")
    @classmethod
    def require_text(cls, v: str) -> str:
        """Reject values made only of whitespace."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class BookUpdate(BookFields):
    """Fields accepted when editing a book; only supplied fields are applied."""

    id: str = Field(..., description="Identifier of the book being edited")

    def changes(self) -> dict[str, Any]:
        """Return the explicitly supplied display fields, keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude={"id"})

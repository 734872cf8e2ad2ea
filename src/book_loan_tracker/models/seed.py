"""
Seed book descriptor.

The seed list is a static JSON array in the format the catalog was first
published with: capitalized keys for some attributes, no ids and no loan
state. Each entry becomes a Book with a fresh id the first time the
tracker runs without a saved snapshot.
"""

from pydantic import BaseModel, ConfigDict, Field

from .book import Book


class SeedBook(BaseModel):
    """One entry of the seed list."""

    image: str | None = None
    title: str
    url: str | None = None
    price: float | str | None = None
    author: str | None = None
    publisher: str | None = Field(None, alias="Publisher")
    publication_year: int | str | None = Field(None, alias="Publication Year")
    pages: int | None = Field(None, alias="Pages")
    language: str | None = Field(None, alias="Language")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_book(self) -> Book:
        """Build a new, unselected, available Book with a fresh id."""
        return Book(
            img_src=self.image,
            img_alt=self.title,
            book_link=self.url,
            title=self.title,
            price=self.price,
            author=self.author,
            publisher=self.publisher,
            publication_year=self.publication_year,
            pages=self.pages,
            language=self.language,
            selected=False,
        )

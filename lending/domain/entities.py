"""Pure domain entities without infrastructure dependencies."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .constants import (
    MAX_AUTHOR_LENGTH,
    MAX_BORROWED_BOOKS,
    MAX_NAME_LENGTH,
    MAX_TITLE_LENGTH,
)
from .exceptions import (
    BookAlreadyBorrowedError,
    BorrowLimitExceededError,
    ValidationError,
)


def validate_text_field(value: str | None, field_name: str, max_length: int) -> None:
    """Validate a required text field according to domain business rules.

    Pure domain validation without logging or external dependencies.

    Args:
        value: The value to validate
        field_name: Human readable field name (for error messages)
        max_length: Maximum allowed length

    Raises:
        ValidationError: If value is missing, empty, too long, or contains
            control characters
    """
    if value is None or not value.strip():
        raise ValidationError(f"{field_name.capitalize()} cannot be empty")

    if len(value) > max_length:
        raise ValidationError(
            f"{field_name.capitalize()} cannot be longer than {max_length} "
            + "characters"
        )

    for char in value:
        if ord(char) < 32 or ord(char) == 127:
            raise ValidationError(
                f"{field_name.capitalize()} cannot contain newlines, tabs, "
                + "or other control characters"
            )


def generate_id(prefix: str) -> str:
    """Create an opaque unique identifier such as ``book_3f2a...``."""
    return f"{prefix}_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Book:
    """Core business entity representing a book in the catalog."""

    id: str
    title: str
    author: str
    borrowed: bool = False
    borrowed_at: datetime | None = None
    returned_at: datetime | None = None

    def __post_init__(self):
        """Validate book data after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate book business rules."""
        validate_text_field(self.title, "title", MAX_TITLE_LENGTH)
        validate_text_field(self.author, "author", MAX_AUTHOR_LENGTH)

    def is_available(self) -> bool:
        return not self.borrowed

    def borrow(self) -> None:
        """Move the book to the borrowed state and stamp the borrow time."""
        if self.borrowed:
            raise BookAlreadyBorrowedError()
        self.borrowed = True
        self.borrowed_at = utc_now()

    def return_book(self) -> None:
        """Move the book back to the available state.

        Returning an available book only refreshes ``returned_at``.
        """
        self.borrowed = False
        self.returned_at = utc_now()


@dataclass
class User:
    """Core business entity representing a library member."""

    id: str
    name: str
    borrowed_book_ids: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate user business rules."""
        validate_text_field(self.name, "name", MAX_NAME_LENGTH)

        if len(set(self.borrowed_book_ids)) != len(self.borrowed_book_ids):
            raise ValidationError("Borrowed books cannot contain duplicates")

    def holds(self, book_id: str) -> bool:
        """Check if the user currently holds a book."""
        return book_id in self.borrowed_book_ids

    def can_borrow(self) -> bool:
        return len(self.borrowed_book_ids) < MAX_BORROWED_BOOKS

    def remaining_capacity(self) -> int:
        return max(0, MAX_BORROWED_BOOKS - len(self.borrowed_book_ids))

    def ensure_can_borrow(self) -> None:
        """Raise if the user already holds the maximum number of books."""
        if not self.can_borrow():
            raise BorrowLimitExceededError(MAX_BORROWED_BOOKS)

    def add_borrowed_book(self, book_id: str) -> None:
        """Record a borrowed book."""
        self.ensure_can_borrow()
        if book_id not in self.borrowed_book_ids:
            self.borrowed_book_ids.append(book_id)

    def remove_borrowed_book(self, book_id: str) -> None:
        """Forget a borrowed book, no-op if the user does not hold it."""
        if book_id in self.borrowed_book_ids:
            self.borrowed_book_ids.remove(book_id)

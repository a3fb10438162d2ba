from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field, SQLModel

from ...domain.constants import MAX_AUTHOR_LENGTH, MAX_NAME_LENGTH, MAX_TITLE_LENGTH
from ...domain.entities import Book as DomainBook
from ...domain.entities import User as DomainUser


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class BookRecord(SQLModel, table=True):  # type: ignore[call-arg]
    """A book row. ``borrowed`` is the availability flag."""

    __tablename__: str = "books"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=64)
    title: str = Field(index=True, min_length=1, max_length=MAX_TITLE_LENGTH)
    author: str = Field(min_length=1, max_length=MAX_AUTHOR_LENGTH)
    borrowed: bool = Field(default=False, index=True)
    borrowed_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    returned_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    @classmethod
    def from_domain(cls, domain_book: DomainBook) -> "BookRecord":
        """Convert domain entity to persistence model."""
        return cls(
            id=domain_book.id,
            title=domain_book.title,
            author=domain_book.author,
            borrowed=domain_book.borrowed,
            borrowed_at=domain_book.borrowed_at,
            returned_at=domain_book.returned_at,
        )

    def to_domain(self) -> DomainBook:
        """Convert persistence model to domain entity."""
        return DomainBook(
            id=self.id,
            title=self.title,
            author=self.author,
            borrowed=self.borrowed,
            borrowed_at=_as_utc(self.borrowed_at),
            returned_at=_as_utc(self.returned_at),
        )


class UserRecord(SQLModel, table=True):  # type: ignore[call-arg]
    """A library member row."""

    __tablename__: str = "users"  # type: ignore[assignment]

    id: str = Field(primary_key=True, max_length=64)
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)

    # ordered list of book ids; a JSON column keeps it portable to sqlite
    borrowed_books: list[str] = Field(default_factory=list, sa_column=Column(JSON))

    @classmethod
    def from_domain(cls, domain_user: DomainUser) -> "UserRecord":
        """Convert domain entity to persistence model."""
        return cls(
            id=domain_user.id,
            name=domain_user.name,
            borrowed_books=list(domain_user.borrowed_book_ids),
        )

    def to_domain(self) -> DomainUser:
        """Convert persistence model to domain entity."""
        return DomainUser(
            id=self.id,
            name=self.name,
            borrowed_book_ids=list(self.borrowed_books or []),
        )

"""Command objects handed from the presentation layer to application services."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AddBookCommand:
    title: str
    author: str


@dataclass(frozen=True)
class CreateUserCommand:
    name: str


@dataclass(frozen=True)
class BorrowBookCommand:
    book_title: str
    user_id: str


@dataclass(frozen=True)
class ReturnBookCommand:
    book_title: str
    user_id: str

"""Tests for the pure domain layer."""

import pytest

from lending.domain.constants import MAX_BORROWED_BOOKS, MAX_TITLE_LENGTH
from lending.domain.entities import Book, User, generate_id
from lending.domain.exceptions import (
    BookAlreadyBorrowedError,
    BookNotFoundError,
    BorrowLimitExceededError,
    DomainError,
    ValidationError,
)
from lending.domain.results import LendingResult, ResultKind


def test_new_book_is_available():
    book = Book(id="book_1", title="Dune", author="Frank Herbert")

    assert book.is_available()
    assert book.borrowed_at is None
    assert book.returned_at is None


@pytest.mark.parametrize(
    ("title", "author", "message"),
    [
        ("", "Frank Herbert", "Title cannot be empty"),
        ("   ", "Frank Herbert", "Title cannot be empty"),
        ("Dune", "", "Author cannot be empty"),
        ("x" * (MAX_TITLE_LENGTH + 1), "Frank Herbert", "Title cannot be longer"),
        ("Dune\n", "Frank Herbert", "control characters"),
    ],
)
def test_book_validation(title: str, author: str, message: str):
    with pytest.raises(ValidationError, match=message):
        Book(id="book_1", title=title, author=author)


def test_borrow_stamps_time_and_rejects_second_borrow():
    book = Book(id="book_1", title="Dune", author="Frank Herbert")

    book.borrow()
    assert book.borrowed
    assert book.borrowed_at is not None
    assert book.borrowed_at.tzinfo is not None

    first_borrowed_at = book.borrowed_at
    with pytest.raises(BookAlreadyBorrowedError):
        book.borrow()
    assert book.borrowed_at == first_borrowed_at


def test_return_makes_book_available_again():
    book = Book(id="book_1", title="Dune", author="Frank Herbert")
    book.borrow()

    book.return_book()

    assert book.is_available()
    assert book.returned_at is not None


def test_return_of_available_book_is_accepted():
    book = Book(id="book_1", title="Dune", author="Frank Herbert")

    book.return_book()

    assert book.is_available()


def test_user_borrow_limit():
    user = User(id="user_1", name="Alice")

    for index in range(MAX_BORROWED_BOOKS):
        assert user.can_borrow()
        user.add_borrowed_book(f"book_{index}")

    assert not user.can_borrow()
    assert user.remaining_capacity() == 0
    with pytest.raises(BorrowLimitExceededError) as exc_info:
        user.add_borrowed_book("book_extra")

    assert exc_info.value.limit == MAX_BORROWED_BOOKS
    assert user.borrowed_book_ids == ["book_0", "book_1", "book_2"]


def test_user_borrowed_books_keep_order_and_skip_duplicates():
    user = User(id="user_1", name="Alice")

    user.add_borrowed_book("book_b")
    user.add_borrowed_book("book_a")
    user.add_borrowed_book("book_b")

    assert user.borrowed_book_ids == ["book_b", "book_a"]
    assert user.remaining_capacity() == 1


def test_remove_borrowed_book_is_noop_when_absent():
    user = User(id="user_1", name="Alice", borrowed_book_ids=["book_a"])

    user.remove_borrowed_book("book_z")
    assert user.borrowed_book_ids == ["book_a"]

    user.remove_borrowed_book("book_a")
    assert user.borrowed_book_ids == []
    assert not user.holds("book_a")


def test_user_rejects_duplicate_borrowed_books():
    with pytest.raises(ValidationError, match="duplicates"):
        User(id="user_1", name="Alice", borrowed_book_ids=["book_a", "book_a"])


def test_user_requires_name():
    with pytest.raises(ValidationError, match="Name cannot be empty"):
        User(id="user_1", name=" ")


def test_generate_id_is_prefixed_and_unique():
    first = generate_id("book")
    second = generate_id("book")

    assert first.startswith("book_")
    assert first != second


def test_lending_result_kinds():
    success = LendingResult.success("Book borrowed successfully")
    assert success.ok
    assert success.kind is ResultKind.SUCCESS
    success.raise_for_error()

    not_found = LendingResult.failure(BookNotFoundError())
    assert not not_found.ok
    assert not_found.kind is ResultKind.NOT_FOUND
    assert not_found.message == "Book not found"
    with pytest.raises(BookNotFoundError):
        not_found.raise_for_error()

    conflict = LendingResult.failure(BorrowLimitExceededError(MAX_BORROWED_BOOKS))
    assert conflict.kind is ResultKind.CONFLICT

    invalid = LendingResult.failure(ValidationError("Title cannot be empty"))
    assert invalid.kind is ResultKind.VALIDATION_ERROR


def test_lending_result_rejects_unclassified_errors():
    with pytest.raises(TypeError):
        LendingResult.failure(DomainError("something else"))

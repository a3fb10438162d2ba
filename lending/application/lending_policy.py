"""Borrow and return rules between books and users.

A book is either available or borrowed. Borrowing requires the book and the
user to exist, the book to be available and the user to hold fewer than
``MAX_BORROWED_BOOKS`` books. Returning requires the book and the user to
exist; a borrowed book can only be returned by the user holding it, while
returning an available book is accepted and changes nothing but
``returned_at``.

Each operation runs as one unit of work: either the book and the user are
both updated and committed, or the session is rolled back.
"""

from typing import Final

from sqlmodel import Session

from ..domain.exceptions import (
    BookAlreadyBorrowedError,
    BookNotFoundError,
    BookNotHeldByUserError,
    DomainError,
    UserNotFoundError,
)
from ..domain.results import LendingResult
from ..infrastructure.database.database import atomic
from ..infrastructure.database.repositories import BookRepository, UserRepository
from ..logging_config import get_logger
from ..logging_utils import log_database_operation, log_lending_action
from ..metrics import (
    books_borrowed_total,
    books_returned_total,
    lending_rejections_total,
)
from .commands import BorrowBookCommand, ReturnBookCommand
from .validation import validate_text_field_with_logging

logger: Final = get_logger(__name__)

BORROW_SUCCESS_MESSAGE: Final = "Book borrowed successfully"
RETURN_SUCCESS_MESSAGE: Final = "Book returned successfully"

# Identifiers and titles share the title column width
_MAX_LOOKUP_LENGTH: Final = 255


class LendingPolicy:
    """Applies borrow and return transitions."""

    def __init__(self, session: Session):
        self.session = session
        self.book_repo = BookRepository(session)
        self.user_repo = UserRepository(session)

    def borrow_book(self, command: BorrowBookCommand) -> LendingResult:
        """Lend the book titled ``command.book_title`` to ``command.user_id``."""
        logger.debug(
            "Borrowing book", book_title=command.book_title, user_id=command.user_id
        )
        try:
            title, user_id = self._validate(command.book_title, command.user_id)

            with atomic(self.session):
                book = self.book_repo.find_by_title(title, lock=True)
                if book is None:
                    raise BookNotFoundError()

                user = self.user_repo.find_by_id(user_id, lock=True)
                if user is None:
                    raise UserNotFoundError()

                if book.borrowed:
                    raise BookAlreadyBorrowedError()

                user.ensure_can_borrow()

                book.borrow()
                user.add_borrowed_book(book.id)

                assert book.borrowed_at is not None
                if not self.book_repo.claim(book.id, book.borrowed_at):
                    # lost the race against a concurrent borrow
                    raise BookAlreadyBorrowedError()

                self.book_repo.save(book)
                self.user_repo.save(user)
        except DomainError as e:
            return self._reject("borrow_book", command.book_title, command.user_id, e)

        log_database_operation(
            operation="borrow", table="books", book_id=book.id, user_id=user.id
        )
        log_lending_action(
            action="borrow_book",
            user_id=user.id,
            book_id=book.id,
            remaining_capacity=user.remaining_capacity(),
        )
        books_borrowed_total.add(1)
        logger.info("Book borrowed successfully", book_id=book.id, user_id=user.id)
        return LendingResult.success(BORROW_SUCCESS_MESSAGE)

    def return_book(self, command: ReturnBookCommand) -> LendingResult:
        """Take back the book titled ``command.book_title`` from ``command.user_id``."""
        logger.debug(
            "Returning book", book_title=command.book_title, user_id=command.user_id
        )
        try:
            title, user_id = self._validate(command.book_title, command.user_id)

            with atomic(self.session):
                book = self.book_repo.find_by_title(title, lock=True)
                if book is None:
                    raise BookNotFoundError()

                user = self.user_repo.find_by_id(user_id, lock=True)
                if user is None:
                    raise UserNotFoundError()

                if book.borrowed and not user.holds(book.id):
                    raise BookNotHeldByUserError()

                was_borrowed = book.borrowed
                book.return_book()
                user.remove_borrowed_book(book.id)

                self.book_repo.save(book)
                self.user_repo.save(user)
        except DomainError as e:
            return self._reject("return_book", command.book_title, command.user_id, e)

        log_database_operation(
            operation="return", table="books", book_id=book.id, user_id=user.id
        )
        log_lending_action(
            action="return_book",
            user_id=user.id,
            book_id=book.id,
            was_borrowed=was_borrowed,
        )
        books_returned_total.add(1)
        logger.info("Book returned successfully", book_id=book.id, user_id=user.id)
        return LendingResult.success(RETURN_SUCCESS_MESSAGE)

    def _validate(self, book_title: str, user_id: str) -> tuple[str, str]:
        return (
            validate_text_field_with_logging(
                book_title, "book title", _MAX_LOOKUP_LENGTH
            ),
            validate_text_field_with_logging(user_id, "user id", _MAX_LOOKUP_LENGTH),
        )

    def _reject(
        self, action: str, book_title: str, user_id: str, error: DomainError
    ) -> LendingResult:
        result = LendingResult.failure(error)
        lending_rejections_total.add(
            1, {"action": action, "reason": type(error).__name__}
        )
        logger.warning(
            "Lending action rejected",
            action=action,
            book_title=book_title,
            user_id=user_id,
            kind=result.kind.value,
            reason=str(error),
        )
        return result

"""Application layer - Catalog and Membership use cases."""

from typing import Final

from sqlmodel import Session

from ..domain.constants import MAX_AUTHOR_LENGTH, MAX_NAME_LENGTH, MAX_TITLE_LENGTH
from ..domain.entities import Book, User, generate_id
from ..domain.exceptions import BookNotFoundError, UserNotFoundError
from ..infrastructure.database.database import atomic
from ..infrastructure.database.repositories import BookRepository, UserRepository
from ..logging_config import get_logger
from ..logging_utils import log_database_operation
from ..metrics import books_added_total, users_created_total
from .commands import AddBookCommand, CreateUserCommand
from .validation import validate_text_field_with_logging

logger: Final = get_logger(__name__)


class CatalogService:
    """Application service for Book operations."""

    def __init__(self, session: Session):
        self.session = session
        self.book_repo = BookRepository(session)

    def add_book(self, command: AddBookCommand) -> Book:
        """Create an available book after validating title and author."""
        title = validate_text_field_with_logging(
            command.title, "title", MAX_TITLE_LENGTH
        )
        author = validate_text_field_with_logging(
            command.author, "author", MAX_AUTHOR_LENGTH
        )
        logger.debug("Adding book", title=title, author=author)

        with atomic(self.session):
            book = self.book_repo.save(
                Book(id=generate_id("book"), title=title, author=author)
            )

        log_database_operation(
            operation="create", table="books", book_id=book.id, title=book.title
        )
        books_added_total.add(1)
        logger.info("Book added successfully", book_id=book.id, title=book.title)
        return book

    def find_by_title(self, title: str) -> Book | None:
        return self.book_repo.find_by_title(title)

    def find_by_id(self, book_id: str) -> Book | None:
        return self.book_repo.find_by_id(book_id)

    def get_book(self, book_id: str) -> Book:
        """Get a book by ID, raising if it does not exist."""
        book = self.book_repo.find_by_id(book_id)
        if book is None:
            logger.warning("Book lookup failed - not found", book_id=book_id)
            raise BookNotFoundError()
        return book

    def list_all(self) -> list[Book]:
        return self.book_repo.find_all()


class MembershipService:
    """Application service for User operations."""

    def __init__(self, session: Session):
        self.session = session
        self.user_repo = UserRepository(session)

    def create_user(self, command: CreateUserCommand) -> User:
        """Create a user holding no books."""
        name = validate_text_field_with_logging(command.name, "name", MAX_NAME_LENGTH)
        logger.debug("Creating user", name=name)

        with atomic(self.session):
            user = self.user_repo.save(User(id=generate_id("user"), name=name))

        log_database_operation(operation="create", table="users", user_id=user.id)
        users_created_total.add(1)
        logger.info("User created successfully", user_id=user.id, name=user.name)
        return user

    def find_by_id(self, user_id: str) -> User | None:
        return self.user_repo.find_by_id(user_id)

    def get_user(self, user_id: str) -> User:
        """Get a user by ID, raising if it does not exist."""
        user = self.user_repo.find_by_id(user_id)
        if user is None:
            logger.warning("User lookup failed - not found", user_id=user_id)
            raise UserNotFoundError()
        return user

    def list_all(self) -> list[User]:
        return self.user_repo.find_all()

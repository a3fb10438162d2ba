from datetime import datetime
from typing import Final

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlmodel import Session

from ..application.commands import (
    AddBookCommand,
    BorrowBookCommand,
    CreateUserCommand,
    ReturnBookCommand,
)
from ..application.lending_policy import LendingPolicy
from ..application.services import CatalogService, MembershipService
from ..domain.constants import MAX_AUTHOR_LENGTH, MAX_NAME_LENGTH, MAX_TITLE_LENGTH
from ..domain.entities import Book, User
from ..infrastructure.database.database import get_session

api_router: Final = APIRouter(
    prefix="/api",
    responses={
        400: {"description": "Bad Request - Invalid input or lending rule violated"},
        404: {"description": "Not Found - Book or user does not exist"},
    },
)

BOOK_ADDED_MESSAGE: Final = "Book added successfully"


class CamelModel(BaseModel):
    """Base for JSON bodies exchanged in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request Models
class BookCreate(CamelModel):
    """Request model for adding a book to the catalog."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=MAX_TITLE_LENGTH,
        description="Book title",
        examples=["Dune"],
    )
    author: str = Field(
        ...,
        min_length=1,
        max_length=MAX_AUTHOR_LENGTH,
        description="Book author",
        examples=["Frank Herbert"],
    )


class LendingRequest(CamelModel):
    """Request model for borrowing or returning a book."""

    book_title: str = Field(
        ..., min_length=1, description="Exact title of the book", examples=["Dune"]
    )
    user_id: str = Field(..., min_length=1, description="Identifier of the user")


class UserCreate(CamelModel):
    """Request model for creating a user."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=MAX_NAME_LENGTH,
        description="Display name of the user",
        examples=["Alice"],
    )


# Response Models
class BookView(CamelModel):
    """Book information returned by the API."""

    id: str = Field(description="Unique book identifier")
    title: str = Field(description="Book title")
    author: str = Field(description="Book author")
    is_borrowed: bool = Field(description="Whether the book is currently borrowed")
    borrowed_at: datetime | None = Field(description="Time of the most recent borrow")
    returned_at: datetime | None = Field(description="Time of the most recent return")

    @classmethod
    def from_domain(cls, book: Book) -> "BookView":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            is_borrowed=book.borrowed,
            borrowed_at=book.borrowed_at,
            returned_at=book.returned_at,
        )


class UserView(CamelModel):
    """User information returned by the API."""

    id: str = Field(description="Unique user identifier")
    name: str = Field(description="User name")
    borrowed_books: list[str] = Field(description="IDs of the books currently held")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        return cls(id=user.id, name=user.name, borrowed_books=user.borrowed_book_ids)


class MessageResponse(BaseModel):
    """Response model for commands that only report success."""

    message: str = Field(description="Success message")


def get_catalog(session: Session = Depends(get_session)) -> CatalogService:
    return CatalogService(session)


def get_membership(session: Session = Depends(get_session)) -> MembershipService:
    return MembershipService(session)


def get_lending_policy(session: Session = Depends(get_session)) -> LendingPolicy:
    return LendingPolicy(session)


@api_router.get(
    "/books",
    response_model=list[BookView],
    tags=["books"],
    summary="List all books",
)
async def api_list_books(
    catalog: CatalogService = Depends(get_catalog),
) -> list[BookView]:
    """Return every book in the catalog, in storage order."""
    return [BookView.from_domain(book) for book in catalog.list_all()]


@api_router.get(
    "/books/{book_id}",
    response_model=BookView,
    tags=["books"],
    summary="Get a book",
    responses={404: {"description": "Book with the specified ID not found"}},
)
async def api_get_book(
    *,
    catalog: CatalogService = Depends(get_catalog),
    book_id: str = Path(description="Identifier of the book"),
) -> BookView:
    return BookView.from_domain(catalog.get_book(book_id))


@api_router.post(
    "/books",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["books"],
    summary="Add a book",
)
async def api_add_book(
    *, catalog: CatalogService = Depends(get_catalog), book: BookCreate
) -> MessageResponse:
    """Add an available book to the catalog."""
    catalog.add_book(AddBookCommand(title=book.title, author=book.author))
    return MessageResponse(message=BOOK_ADDED_MESSAGE)


@api_router.post(
    "/books/borrow",
    response_model=MessageResponse,
    tags=["books", "lending"],
    summary="Borrow a book",
    description="""
    Lend a book, looked up by exact title, to a user.

    Fails with 404 when the book or the user does not exist, and with 400 when
    the book is already borrowed or the user already holds the maximum number
    of books.
    """,
)
async def api_borrow_book(
    *, policy: LendingPolicy = Depends(get_lending_policy), body: LendingRequest
) -> MessageResponse:
    result = policy.borrow_book(
        BorrowBookCommand(book_title=body.book_title, user_id=body.user_id)
    )
    result.raise_for_error()
    return MessageResponse(message=result.message)


@api_router.post(
    "/books/return",
    response_model=MessageResponse,
    tags=["books", "lending"],
    summary="Return a book",
    description="""
    Return a book, looked up by exact title, on behalf of a user.

    Returning a book that is not borrowed succeeds without changes. A borrowed
    book can only be returned by the user who holds it.
    """,
)
async def api_return_book(
    *, policy: LendingPolicy = Depends(get_lending_policy), body: LendingRequest
) -> MessageResponse:
    result = policy.return_book(
        ReturnBookCommand(book_title=body.book_title, user_id=body.user_id)
    )
    result.raise_for_error()
    return MessageResponse(message=result.message)


@api_router.get(
    "/users",
    response_model=list[UserView],
    tags=["users"],
    summary="List all users",
)
async def api_list_users(
    membership: MembershipService = Depends(get_membership),
) -> list[UserView]:
    return [UserView.from_domain(user) for user in membership.list_all()]


@api_router.get(
    "/users/{user_id}",
    response_model=UserView,
    tags=["users"],
    summary="Get a user",
    responses={404: {"description": "User with the specified ID not found"}},
)
async def api_get_user(
    *,
    membership: MembershipService = Depends(get_membership),
    user_id: str = Path(description="Identifier of the user"),
) -> UserView:
    return UserView.from_domain(membership.get_user(user_id))


@api_router.post(
    "/users",
    response_model=UserView,
    status_code=status.HTTP_201_CREATED,
    tags=["users"],
    summary="Create a user",
)
async def api_create_user(
    *, membership: MembershipService = Depends(get_membership), user: UserCreate
) -> UserView:
    """Create a user holding no books."""
    return UserView.from_domain(
        membership.create_user(CreateUserCommand(name=user.name))
    )

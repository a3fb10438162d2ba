import random

import pytest
from sqlmodel import Session

from lending.application.commands import (
    AddBookCommand,
    BorrowBookCommand,
    CreateUserCommand,
    ReturnBookCommand,
)
from lending.application.lending_policy import LendingPolicy
from lending.application.services import CatalogService, MembershipService
from lending.domain.constants import MAX_BORROWED_BOOKS
from lending.domain.entities import utc_now
from lending.domain.exceptions import (
    BookAlreadyBorrowedError,
    BookNotFoundError,
    BookNotHeldByUserError,
    BorrowLimitExceededError,
    UserNotFoundError,
    ValidationError,
)
from lending.domain.results import ResultKind
from lending.infrastructure.database.repositories import BookRepository


def _borrow(session: Session, title: str, user_id: str):
    return LendingPolicy(session).borrow_book(
        BorrowBookCommand(book_title=title, user_id=user_id)
    )


def _return(session: Session, title: str, user_id: str):
    return LendingPolicy(session).return_book(
        ReturnBookCommand(book_title=title, user_id=user_id)
    )


def assert_lending_invariants(session: Session) -> None:
    """A book is borrowed iff exactly one user holds it; nobody exceeds the cap."""
    books = CatalogService(session).list_all()
    users = MembershipService(session).list_all()

    for book in books:
        holders = [user for user in users if book.id in user.borrowed_book_ids]
        assert len(holders) <= 1
        assert book.borrowed == (len(holders) == 1)

    for user in users:
        assert len(user.borrowed_book_ids) <= MAX_BORROWED_BOOKS
        assert len(set(user.borrowed_book_ids)) == len(user.borrowed_book_ids)


def test_add_book_then_find_by_title(catalog: CatalogService):
    book = catalog.add_book(AddBookCommand(title="Dune", author="Herbert"))

    found = catalog.find_by_title("Dune")

    assert found is not None
    assert found.id == book.id
    assert found.author == "Herbert"
    assert not found.borrowed
    assert catalog.find_by_id(book.id) == found


def test_add_book_trims_input(catalog: CatalogService):
    book = catalog.add_book(AddBookCommand(title="  Dune ", author=" Herbert"))

    assert book.title == "Dune"
    assert book.author == "Herbert"


@pytest.mark.parametrize(("title", "author"), [("", "Herbert"), ("Dune", "   ")])
def test_add_book_requires_title_and_author(
    catalog: CatalogService, title: str, author: str
):
    with pytest.raises(ValidationError):
        catalog.add_book(AddBookCommand(title=title, author=author))

    assert catalog.list_all() == []


def test_find_missing_book_returns_none(catalog: CatalogService):
    assert catalog.find_by_title("Missing") is None
    assert catalog.find_by_id("book_missing") is None
    with pytest.raises(BookNotFoundError):
        catalog.get_book("book_missing")


def test_list_books(add_book, catalog: CatalogService):
    add_book("Dune")
    add_book("Emma", author="Jane Austen")

    titles = sorted(book.title for book in catalog.list_all())

    assert titles == ["Dune", "Emma"]


def test_create_user(membership: MembershipService):
    user = membership.create_user(CreateUserCommand(name="Alice"))

    assert user.id.startswith("user_")
    assert user.borrowed_book_ids == []
    assert membership.get_user(user.id) == user
    assert [u.id for u in membership.list_all()] == [user.id]


def test_create_user_requires_name(membership: MembershipService):
    with pytest.raises(ValidationError, match="Name cannot be empty"):
        membership.create_user(CreateUserCommand(name=""))


def test_missing_user(membership: MembershipService):
    assert membership.find_by_id("user_missing") is None
    with pytest.raises(UserNotFoundError):
        membership.get_user("user_missing")


def test_borrow_and_return_scenario(
    session: Session, add_book, create_user, catalog, membership
):
    dune = add_book("Dune")
    alice = create_user("Alice")
    bob = create_user("Bob")

    result = _borrow(session, "Dune", alice.id)
    assert result.ok
    assert result.message == "Book borrowed successfully"

    borrowed = catalog.get_book(dune.id)
    assert borrowed.borrowed
    assert borrowed.borrowed_at is not None
    assert membership.get_user(alice.id).borrowed_book_ids == [dune.id]

    rejected = _borrow(session, "Dune", bob.id)
    assert rejected.kind is ResultKind.CONFLICT
    assert isinstance(rejected.error, BookAlreadyBorrowedError)
    assert membership.get_user(bob.id).borrowed_book_ids == []

    returned = _return(session, "Dune", alice.id)
    assert returned.ok
    assert returned.message == "Book returned successfully"

    available = catalog.get_book(dune.id)
    assert not available.borrowed
    assert available.returned_at is not None
    assert membership.get_user(alice.id).borrowed_book_ids == []
    assert_lending_invariants(session)


def test_borrow_limit(session: Session, add_book, create_user, catalog, membership):
    alice = create_user("Alice")
    books = [add_book(title) for title in ("Dune", "Emma", "Ulysses", "Beloved")]

    for book in books[:MAX_BORROWED_BOOKS]:
        assert _borrow(session, book.title, alice.id).ok

    result = _borrow(session, "Beloved", alice.id)

    assert result.kind is ResultKind.CONFLICT
    assert isinstance(result.error, BorrowLimitExceededError)
    assert membership.get_user(alice.id).borrowed_book_ids == [
        book.id for book in books[:MAX_BORROWED_BOOKS]
    ]
    assert not catalog.get_book(books[3].id).borrowed
    assert_lending_invariants(session)


def test_already_borrowed_is_checked_before_limit(
    session: Session, add_book, create_user
):
    alice = create_user("Alice")
    bob = create_user("Bob")
    for title in ("Dune", "Emma", "Ulysses"):
        add_book(title)
        assert _borrow(session, title, alice.id).ok
    add_book("Beloved")
    assert _borrow(session, "Beloved", bob.id).ok

    result = _borrow(session, "Beloved", alice.id)

    assert isinstance(result.error, BookAlreadyBorrowedError)


def test_not_found_checks_come_first(session: Session, add_book, create_user):
    alice = create_user("Alice")
    add_book("Dune")

    missing_book = _borrow(session, "Missing", "user_missing")
    assert missing_book.kind is ResultKind.NOT_FOUND
    assert isinstance(missing_book.error, BookNotFoundError)

    missing_user = _borrow(session, "Dune", "user_missing")
    assert isinstance(missing_user.error, UserNotFoundError)

    assert isinstance(_return(session, "Missing", alice.id).error, BookNotFoundError)
    assert isinstance(_return(session, "Dune", "user_missing").error, UserNotFoundError)


def test_blank_lookup_values_are_validation_errors(session: Session):
    result = _borrow(session, "  ", "user_1")

    assert result.kind is ResultKind.VALIDATION_ERROR
    assert isinstance(result.error, ValidationError)


def test_return_of_available_book_is_idempotent(
    session: Session, add_book, create_user, catalog, membership
):
    dune = add_book("Dune")
    alice = create_user("Alice")

    assert _return(session, "Dune", alice.id).ok
    assert _return(session, "Dune", alice.id).ok

    assert not catalog.get_book(dune.id).borrowed
    assert membership.get_user(alice.id).borrowed_book_ids == []
    assert_lending_invariants(session)


def test_only_holder_can_return_borrowed_book(
    session: Session, add_book, create_user, catalog, membership
):
    dune = add_book("Dune")
    alice = create_user("Alice")
    bob = create_user("Bob")
    assert _borrow(session, "Dune", alice.id).ok

    result = _return(session, "Dune", bob.id)

    assert result.kind is ResultKind.CONFLICT
    assert isinstance(result.error, BookNotHeldByUserError)
    assert catalog.get_book(dune.id).borrowed
    assert membership.get_user(alice.id).borrowed_book_ids == [dune.id]


def test_failed_persistence_rolls_back_borrow(
    session: Session, add_book, create_user, catalog, membership, monkeypatch
):
    dune = add_book("Dune")
    alice = create_user("Alice")
    policy = LendingPolicy(session)

    def broken_save(user):
        raise RuntimeError("disk full")

    monkeypatch.setattr(policy.user_repo, "save", broken_save)

    with pytest.raises(RuntimeError):
        policy.borrow_book(BorrowBookCommand(book_title="Dune", user_id=alice.id))

    assert not catalog.get_book(dune.id).borrowed
    assert membership.get_user(alice.id).borrowed_book_ids == []


def test_claim_only_succeeds_once(session: Session, add_book):
    dune = add_book("Dune")
    repo = BookRepository(session)
    borrowed_at = utc_now()

    assert repo.claim(dune.id, borrowed_at)
    assert not repo.claim(dune.id, borrowed_at)
    session.rollback()


def test_random_operations_keep_invariants(session: Session, add_book, create_user):
    rng = random.Random(1234)
    titles = [f"Book {index}" for index in range(6)]
    for title in titles:
        add_book(title)
    user_ids = [create_user(name).id for name in ("Alice", "Bob", "Carol")]

    for _ in range(120):
        title = rng.choice(titles)
        user_id = rng.choice(user_ids)
        if rng.random() < 0.6:
            result = _borrow(session, title, user_id)
        else:
            result = _return(session, title, user_id)
        assert result.kind in (ResultKind.SUCCESS, ResultKind.CONFLICT)
        assert_lending_invariants(session)

"""Infrastructure layer - Repository implementations."""

from datetime import datetime

from sqlalchemy import update
from sqlmodel import Session, col, select

from ...domain.entities import Book as DomainBook
from ...domain.entities import User as DomainUser
from .models import BookRecord, UserRecord


class BookRepository:
    """Repository for Book persistence operations.

    Writes are staged on the session and flushed; committing is left to the
    caller's unit of work.
    """

    def __init__(self, session: Session):
        self.session = session

    def save(self, domain_book: DomainBook) -> DomainBook:
        """Insert or update a book."""
        record = self.session.merge(BookRecord.from_domain(domain_book))
        self.session.flush()
        return record.to_domain()

    def find_by_id(self, book_id: str) -> DomainBook | None:
        """Find book by ID."""
        record = self.session.get(BookRecord, book_id)
        return record.to_domain() if record else None

    def find_by_title(self, title: str, *, lock: bool = False) -> DomainBook | None:
        """Find the first book with exactly this title.

        With ``lock`` the row is selected ``FOR UPDATE`` on back-ends that
        support row locks.
        """
        statement = select(BookRecord).where(BookRecord.title == title)
        if lock:
            statement = statement.with_for_update()
        record = self.session.exec(statement).first()
        return record.to_domain() if record else None

    def find_all(self) -> list[DomainBook]:
        """Get all books."""
        records = self.session.exec(select(BookRecord)).all()
        return [record.to_domain() for record in records]

    def claim(self, book_id: str, borrowed_at: datetime) -> bool:
        """Flip ``borrowed`` from false to true in a single statement.

        Returns False when the book was already borrowed, e.g. by a
        concurrent request that committed first.
        """
        statement = (
            update(BookRecord)
            .where(
                col(BookRecord.id) == book_id,
                col(BookRecord.borrowed).is_(False),
            )
            .values(borrowed=True, borrowed_at=borrowed_at)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(statement)  # type: ignore[call-overload]
        return bool(result.rowcount == 1)


class UserRepository:
    """Repository for User persistence operations."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, domain_user: DomainUser) -> DomainUser:
        """Insert or update a user."""
        record = self.session.merge(UserRecord.from_domain(domain_user))
        self.session.flush()
        return record.to_domain()

    def find_by_id(self, user_id: str, *, lock: bool = False) -> DomainUser | None:
        """Find user by ID."""
        statement = select(UserRecord).where(UserRecord.id == user_id)
        if lock:
            statement = statement.with_for_update()
        record = self.session.exec(statement).first()
        return record.to_domain() if record else None

    def find_all(self) -> list[DomainUser]:
        """Get all users."""
        records = self.session.exec(select(UserRecord)).all()
        return [record.to_domain() for record in records]

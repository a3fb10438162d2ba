"""Domain-specific exceptions."""


class DomainError(Exception):
    """Base exception for domain errors."""

    pass


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    pass


class NotFoundError(DomainError):
    """Raised when a referenced book or user does not exist."""

    pass


class BookNotFoundError(NotFoundError):
    def __init__(self, message: str = "Book not found"):
        super().__init__(message)


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class ConflictError(DomainError):
    """Raised when a lending transition is not allowed in the current state."""

    pass


class BookAlreadyBorrowedError(ConflictError):
    def __init__(self, message: str = "Book is already borrowed"):
        super().__init__(message)


class BorrowLimitExceededError(ConflictError):
    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"User has reached the borrow limit of {limit} books")


class BookNotHeldByUserError(ConflictError):
    def __init__(self, message: str = "Book is not borrowed by this user"):
        super().__init__(message)

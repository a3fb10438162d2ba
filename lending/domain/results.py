"""Explicit outcome of a lending operation."""

from dataclasses import dataclass
from enum import StrEnum

from .exceptions import ConflictError, DomainError, NotFoundError, ValidationError


class ResultKind(StrEnum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


def kind_of(error: DomainError) -> ResultKind:
    """Classify a domain error into a result kind."""
    if isinstance(error, NotFoundError):
        return ResultKind.NOT_FOUND
    if isinstance(error, ConflictError):
        return ResultKind.CONFLICT
    if isinstance(error, ValidationError):
        return ResultKind.VALIDATION_ERROR
    raise TypeError(f"Unclassified domain error: {type(error).__name__}")


@dataclass(frozen=True)
class LendingResult:
    """Tagged result of a borrow or return: success or a typed failure.

    Failures carry the domain error so the presentation layer can map it to a
    status code without re-deriving the reason.
    """

    kind: ResultKind
    message: str
    error: DomainError | None = None

    @classmethod
    def success(cls, message: str) -> "LendingResult":
        return cls(kind=ResultKind.SUCCESS, message=message)

    @classmethod
    def failure(cls, error: DomainError) -> "LendingResult":
        return cls(kind=kind_of(error), message=str(error), error=error)

    @property
    def ok(self) -> bool:
        return self.kind is ResultKind.SUCCESS

    def raise_for_error(self) -> None:
        """Re-raise the carried domain error for failed results."""
        if self.error is not None:
            raise self.error

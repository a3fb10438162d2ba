"""Centralized error handling for the presentation layer."""

from fastapi import Request
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    BookAlreadyBorrowedError,
    BookNotFoundError,
    BookNotHeldByUserError,
    BorrowLimitExceededError,
    ConflictError,
    DomainError,
    NotFoundError,
    UserNotFoundError,
    ValidationError,
)
from .problem_details import (
    ConflictProblemDetail,
    ErrorCodes,
    ProblemDetail,
    ProblemDetailFactory,
    ValidationProblemDetail,
)

_CONFLICT_REASONS: dict[type[ConflictError], str] = {
    BookAlreadyBorrowedError: "book_already_borrowed",
    BorrowLimitExceededError: "borrow_limit_exceeded",
    BookNotHeldByUserError: "book_not_held_by_user",
}


def problem_for(error: DomainError, instance: str | None = None) -> ProblemDetail:
    """Map a domain error to its Problem Details document."""
    problem: ProblemDetail | ValidationProblemDetail | ConflictProblemDetail
    if isinstance(error, BookNotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type="book", detail=str(error), instance=instance
        )
    elif isinstance(error, UserNotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type="user", detail=str(error), instance=instance
        )
    elif isinstance(error, NotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type="resource", detail=str(error), instance=instance
        )
    elif isinstance(error, ConflictError):
        problem = ProblemDetailFactory.lending_conflict(
            reason=_CONFLICT_REASONS.get(type(error), "conflict"),
            detail=str(error),
            instance=instance,
        )
    elif isinstance(error, ValidationError):
        problem = ProblemDetailFactory.validation_failed(
            detail=str(error),
            instance=instance,
            field_errors=_extract_field_errors(error),
        )
    else:
        problem = ProblemDetailFactory.internal_server_error(
            detail="An unexpected error occurred. Please try again.",
            instance=instance,
        )
    return problem


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to Problem Details HTTP responses."""
    problem = problem_for(error, instance=str(request.url.path))
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
    )


def _extract_field_errors(error: ValidationError) -> list[dict[str, str]]:
    """Derive a field level error from a domain validation message.

    Messages look like ``"Title cannot be empty"``; the leading words up to
    ``cannot`` name the field.
    """
    message = str(error)
    head, sep, _ = message.partition(" cannot ")
    if not sep:
        return []

    field = head.strip().lower().replace(" ", "_")
    lowered = message.lower()
    if "empty" in lowered:
        code = ErrorCodes.FIELD_REQUIRED
    elif "longer" in lowered:
        code = ErrorCodes.FIELD_TOO_LONG
    elif "control characters" in lowered:
        code = ErrorCodes.FIELD_INVALID_FORMAT
    else:
        code = ErrorCodes.FIELD_INVALID_VALUE

    return [{"field": field, "code": code, "message": message}]

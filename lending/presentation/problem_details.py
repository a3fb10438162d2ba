"""RFC 7807 Problem Details models for API error responses."""

from typing import Any, Final

from fastapi import status
from pydantic import BaseModel, Field

PROBLEM_BASE_URI: Final = "https://lending.example.com/problems"


class ErrorCodes:
    """Machine readable codes used in field level errors."""

    FIELD_REQUIRED: Final = "field_required"
    FIELD_TOO_LONG: Final = "field_too_long"
    FIELD_INVALID_FORMAT: Final = "field_invalid_format"
    FIELD_INVALID_VALUE: Final = "field_invalid_value"


class ProblemDetail(BaseModel):
    """Problem Details body (RFC 7807)."""

    type: str = Field(description="URI identifying the problem type")
    title: str = Field(description="Short summary of the problem type")
    status: int = Field(description="HTTP status code")
    detail: str | None = Field(
        default=None, description="Human readable explanation of this occurrence"
    )
    instance: str | None = Field(
        default=None, description="Request path where the problem occurred"
    )


class ValidationProblemDetail(ProblemDetail):
    errors: list[dict[str, Any]] | None = Field(
        default=None, description="Field level validation errors"
    )


class ConflictProblemDetail(ProblemDetail):
    reason: str | None = Field(
        default=None, description="Which lending rule rejected the request"
    )


class ProblemDetailFactory:
    """Builds the problem documents used across the API."""

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, Any]] | None = None,
    ) -> ValidationProblemDetail:
        return ValidationProblemDetail(
            type=f"{PROBLEM_BASE_URI}/validation-failed",
            title="Validation Failed",
            status=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            instance=instance,
            errors=field_errors or None,
        )

    @staticmethod
    def resource_not_found(
        resource_type: str, detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_BASE_URI}/{resource_type}-not-found",
            title=f"{resource_type.title()} Not Found",
            status=status.HTTP_404_NOT_FOUND,
            detail=detail,
            instance=instance,
        )

    @staticmethod
    def lending_conflict(
        reason: str, detail: str, instance: str | None = None
    ) -> ConflictProblemDetail:
        # lending conflicts are client errors, reported as 400 rather than 409
        return ConflictProblemDetail(
            type=f"{PROBLEM_BASE_URI}/lending-conflict",
            title="Lending Rule Violated",
            status=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            instance=instance,
            reason=reason,
        )

    @staticmethod
    def internal_server_error(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_BASE_URI}/internal-error",
            title="Internal Server Error",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            instance=instance,
        )

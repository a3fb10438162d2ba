"""Shared validation utilities for application layer.

Wraps the pure domain validation with structured logging so rejected input
shows up in the logs with the field it concerned.
"""

from ..domain.entities import validate_text_field
from ..domain.exceptions import ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)


def validate_text_field_with_logging(
    value: str | None, field_name: str, max_length: int
) -> str:
    """Validate and normalize a required text field.

    Args:
        value: The raw value as received
        field_name: Field being validated (for error messages)
        max_length: Maximum allowed length

    Returns:
        The value with surrounding whitespace removed

    Raises:
        ValidationError: If the value is missing, empty, too long, or contains
            control characters
    """
    try:
        validate_text_field(value, field_name, max_length)
    except ValidationError as e:
        if "empty" in str(e):
            logger.warning(
                "Validation failed - empty value provided",
                field=field_name,
                attempted_value=repr(value),
            )
        elif "longer" in str(e):
            logger.warning(
                "Validation failed - value too long",
                field=field_name,
                value_length=len(value or ""),
            )
        else:
            logger.warning(
                "Validation failed - contains problematic character",
                field=field_name,
                attempted_value=repr(value),
            )
        raise

    assert value is not None
    return value.strip()

"""Small request-field validators that raise ValidationError with a specific message."""
from typing import Any

from ..errors import ValidationError


def require_int(
    value: Any,
    field: str,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Return ``value`` as an int, rejecting bools, floats with fractions and strings.

    Raises:
        ValidationError: If the value is missing, not an integer, or out of range.
    """
    if value is None:
        raise ValidationError(f"{field} is required.")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer.")
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer.")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}.")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} must be at most {maximum}.")
    return value


def optional_int(value: Any, field: str, minimum: int | None = None, maximum: int | None = None) -> int | None:
    if value is None:
        return None
    return require_int(value, field, minimum, maximum)


def clean_text(value: Any, field: str, max_length: int) -> str:
    """Trim a required text field and enforce non-empty and a length bound.

    Raises:
        ValidationError: If missing, not a string, empty after trimming, or too long.
    """
    if value is None:
        raise ValidationError(f"{field} is required.")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.")
    text = value.strip()
    if not text:
        raise ValidationError(f"{field} cannot be empty.")
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds maximum length of {max_length} characters.")
    return text


def optional_text(value: Any, field: str, max_length: int) -> str | None:
    """Like :func:`clean_text` but None or blank yields None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string.")
    text = value.strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds maximum length of {max_length} characters.")
    return text

"""Pure field checks shared by the request validators.

Each check raises ``FieldValidationError`` for the named field, so the first
failing check in a validator is the one reported.
"""

from forum_api.services.base import FieldValidationError


def required_text(value: str | None, name: str, message: str, strip: bool = True) -> str:
    """Return the value (trimmed unless ``strip`` is False), rejecting missing or blank input."""
    if value is None:
        raise FieldValidationError(name, message)
    if strip:
        value = value.strip()
    if not value:
        raise FieldValidationError(name, message)
    return value


def max_length(value: str, limit: int, name: str, message: str) -> str:
    """Reject values longer than ``limit`` characters."""
    if len(value) > limit:
        raise FieldValidationError(name, message)
    return value


def positive_int(value: int | None, default: int, name: str, message: str) -> int:
    """Return ``value`` (or ``default`` when missing), rejecting values below 1."""
    if value is None:
        return default
    if value < 1:
        raise FieldValidationError(name, message)
    return value

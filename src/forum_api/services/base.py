"""Service-layer exceptions.

Every failure raised by a pipeline stage or an executor is a ``ServiceError``.
The HTTP layer turns these into the JSON error envelope; the status code and
the optional field name travel with the exception.
"""

from typing import Any


class ServiceError(Exception):
    """Base exception for service errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.name = name

    def to_error(self) -> dict[str, Any]:
        """Return the ``error`` member of the response envelope."""
        error: dict[str, Any] = {"message": self.message}
        if self.name is not None:
            error["name"] = self.name
        return error


class FieldValidationError(ServiceError):
    """Raised when a request field fails validation."""

    status_code = 400

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message, name=name)


class AuthorizationError(ServiceError):
    """Raised when an operation needs a signed-in caller."""

    status_code = 403

    def __init__(self, message: str = "User not signed in") -> None:
        super().__init__(message, name="re-auth")


class NotFoundError(ServiceError):
    """Raised when a resource is not found."""

    status_code = 404

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class ConversionError(ServiceError):
    """Raised when a store row cannot be mapped to a response record."""

    def __init__(self, column: str) -> None:
        super().__init__(f"Error converting {column} to response type")
        self.column = column


class StoreUnavailableError(ServiceError):
    """Raised when no database connection can be obtained."""

    status_code = 503

    def __init__(self, message: str = "Database is unavailable") -> None:
        super().__init__(message)


class PipelineStateError(ServiceError):
    """Raised when a pipeline stage runs before its prerequisites."""

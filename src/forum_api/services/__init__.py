"""Request validators, command executors and their exceptions."""

from forum_api.services.base import (
    AuthorizationError,
    ConversionError,
    FieldValidationError,
    NotFoundError,
    PipelineStateError,
    ServiceError,
    StoreUnavailableError,
)

__all__ = [
    "AuthorizationError",
    "ConversionError",
    "FieldValidationError",
    "NotFoundError",
    "PipelineStateError",
    "ServiceError",
    "StoreUnavailableError",
]

"""Response envelope shared by every endpoint."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ErrorDetail(BaseModel):
    """Error member of a failed response."""

    name: str | None = Field(default=None, description="Offending field, when there is one")
    message: str = Field(description="Human readable error message")


class Envelope(BaseModel, Generic[DataT]):
    """Successful response wrapper."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    data: DataT | None = Field(default=None, description="Response payload")
    message: str | None = Field(default=None, description="Optional status message")


class ErrorEnvelope(BaseModel):
    """Failed response wrapper."""

    success: bool = Field(default=False, description="Always false")
    message: str = Field(description="Human readable error message")
    error: ErrorDetail = Field(description="Error details")

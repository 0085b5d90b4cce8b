"""Pydantic schemas for account and authentication API endpoints.

Request fields are all optional: presence and length checks run in the
validation stage so that the first failing field is reported on its own.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class CreateAccountRequest(BaseModel):
    """Schema for account sign-up."""

    username: str | None = Field(default=None, description="Unique username (max 50 characters)")
    password: str | None = Field(default=None, description="Password (max 50 characters)")
    confirm_password: str | None = Field(default=None, description="Must match password")


class LoginRequest(BaseModel):
    """Schema for login request."""

    username: str | None = Field(default=None, description="Username")
    password: str | None = Field(default=None, description="Password")


class AuthResponse(BaseModel):
    """Account identity plus a freshly issued access token."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    access_token: str = Field(description="JWT access token, valid for two weeks")


class SessionUser(BaseModel):
    """The signed-in caller."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")


class UserProfile(BaseModel):
    """Public profile of an account."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")
    created_at: datetime = Field(description="When the account was created")
    posts: int = Field(description="Number of posts created by the user")

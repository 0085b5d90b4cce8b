"""Security utilities for password hashing and JWT handling."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Annotated

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from forum_api.config import get_settings

logger = logging.getLogger(__name__)

# OAuth2 scheme for Bearer token authentication. Missing tokens are not an
# error here: anonymous callers are allowed on read endpoints.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth", auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, as carried in a session token."""

    id: int
    username: str
    issued_at: datetime
    expires_at: datetime


def hash_password(password: str, rounds: int | None = None) -> str:
    """Hash a plain text password using bcrypt."""
    if rounds is None:
        rounds = get_settings().password_hash_rounds
    password_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain text password against a hashed password."""
    password_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def create_access_token(
    user_id: int,
    username: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token for an account.

    Args:
        user_id: Account ID, stored as the "sub" claim.
        username: Account username.
        expires_delta: Optional custom lifetime. Defaults to the settings value (two weeks).

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()

    issued_at = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    to_encode = {
        "sub": str(user_id),
        "username": username,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> Identity | None:
    """Decode and validate a JWT access token.

    Args:
        token: The JWT token string to decode

    Returns:
        The identity carried by the token, None if invalid or expired
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    try:
        return Identity(
            id=int(payload["sub"]),
            username=str(payload["username"]),
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (KeyError, TypeError, ValueError):
        return None


async def get_optional_identity(
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> Identity | None:
    """Get the caller's identity from the Authorization header, if any.

    A missing, malformed or expired token makes the caller anonymous.
    Endpoints that need a signed-in caller enforce it in their pipeline.
    """
    if token is None:
        return None
    return decode_access_token(token)


# Type alias for use in route dependencies
OptionalIdentity = Annotated[Identity | None, Depends(get_optional_identity)]

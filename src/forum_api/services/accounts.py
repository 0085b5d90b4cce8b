"""Account creation, login and profiles."""

import logging
from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError

from forum_api.config import get_settings
from forum_api.models.post import Post
from forum_api.models.user import User
from forum_api.pipeline import Anonymous, ExecutionContext, UserT, Validated, WithDb
from forum_api.schemas.user import AuthResponse, CreateAccountRequest, LoginRequest, UserProfile
from forum_api.services.assembler import profile_from_row
from forum_api.services.base import FieldValidationError, NotFoundError
from forum_api.services.checks import max_length, required_text
from forum_api.utils.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 50
PASSWORD_MAX_LENGTH = 50


@lru_cache
def _unknown_user_hash() -> str:
    """Hash compared against for unknown usernames, so every failed login runs bcrypt."""
    return hash_password("unknown-user-placeholder", get_settings().password_hash_rounds)


@dataclass(frozen=True)
class NewAccount:
    """Sign-up details that passed validation."""

    username: str
    password: str


@dataclass(frozen=True)
class Credentials:
    """Login details that passed validation."""

    username: str
    password: str


async def validate_new_account(
    payload: CreateAccountRequest,
    context: ExecutionContext[WithDb, Anonymous],
) -> NewAccount:
    """Check sign-up details; the username uniqueness check runs last."""
    username = required_text(payload.username, "username", "Username is required")
    password = required_text(payload.password, "password", "Password is required", strip=False)

    if payload.password != payload.confirm_password:
        raise FieldValidationError("confirm_password", "Passwords does not match")

    max_length(
        username,
        USERNAME_MAX_LENGTH,
        "username",
        "Username should not be more than 50 characters",
    )
    max_length(
        password,
        PASSWORD_MAX_LENGTH,
        "password",
        "Password should not be more than 50 characters",
    )

    taken = await context.session.scalar(select(exists().where(User.username == username)))
    if taken:
        raise FieldValidationError("username", "Username is already taken")

    return NewAccount(username=username, password=password)


async def create_account(validated: Validated[NewAccount, Anonymous]) -> AuthResponse:
    """Create the account and sign it in.

    Raises:
        FieldValidationError: If the username was registered concurrently.
    """
    account = validated.command
    session = validated.session

    user = User(
        username=account.username,
        password_hash=hash_password(account.password, get_settings().password_hash_rounds),
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as e:
        raise FieldValidationError("username", "Username is already taken") from e

    logger.info("Created account %s (id=%s)", user.username, user.id)
    return AuthResponse(
        id=user.id,
        username=user.username,
        access_token=create_access_token(user.id, user.username),
    )


async def validate_login(
    payload: LoginRequest,
    context: ExecutionContext[WithDb, Anonymous],
) -> Credentials:
    """Check that both login fields are present."""
    username = required_text(payload.username, "username", "Username is required")
    password = required_text(payload.password, "password", "Password is required", strip=False)
    return Credentials(username=username, password=password)


async def login(validated: Validated[Credentials, Anonymous]) -> AuthResponse:
    """Authenticate and issue a two-week access token.

    Raises:
        FieldValidationError: If the username is unknown or the password is wrong.
            Both cases get the same message.
    """
    credentials = validated.command
    result = await validated.session.execute(
        select(User).where(User.username == credentials.username)
    )
    user = result.scalar_one_or_none()

    password_hash = user.password_hash if user else _unknown_user_hash()
    if not verify_password(credentials.password, password_hash) or user is None:
        raise FieldValidationError("password", "Invalid username or password")

    return AuthResponse(
        id=user.id,
        username=user.username,
        access_token=create_access_token(user.id, user.username),
    )


async def fetch_user_profile(validated: Validated[int, UserT]) -> UserProfile:
    """Public profile of a user.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user_id = validated.command
    post_count = (
        select(func.count(Post.id)).where(Post.user_id == User.id).scalar_subquery()
    )
    query = select(User.id, User.username, User.created_at, post_count.label("posts")).where(
        User.id == user_id
    )
    result = await validated.session.execute(query)
    row = result.one_or_none()

    if row is None:
        raise NotFoundError("User does not exist")

    return profile_from_row(row)

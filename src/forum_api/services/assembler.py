"""Map store rows to response records.

Each mapper reads every column it needs by name and checks its type. A
missing or mistyped column fails the whole row with ``ConversionError``;
records are never built from partial or default-filled data.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy.engine import Row

from forum_api.schemas.post import PostAuthor, PostResponse
from forum_api.schemas.topic import TopicResponse, TrendingTopic
from forum_api.schemas.user import UserProfile
from forum_api.services.base import ConversionError

T = TypeVar("T")


@dataclass(frozen=True)
class CommentRow:
    """One comment of a post, as returned by the comment-closure query."""

    id: int
    parent_id: int | None
    body: str
    author_id: int
    author_name: str
    created_at: datetime
    replies: int


def _mapping(row: Row[Any] | Mapping[str, Any]) -> Mapping[str, Any]:
    if isinstance(row, Row):
        return row._mapping
    return row


def _column(row: Mapping[str, Any], name: str, expected: type[T]) -> T:
    try:
        value = row[name]
    except KeyError:
        raise ConversionError(name) from None
    # bool is an int subclass; integer columns must not accept it
    if expected is int and isinstance(value, bool):
        raise ConversionError(name)
    if not isinstance(value, expected):
        raise ConversionError(name)
    return value


def _optional_column(row: Mapping[str, Any], name: str, expected: type[T]) -> T | None:
    if name not in row:
        raise ConversionError(name)
    if row[name] is None:
        return None
    return _column(row, name, expected)


def _flag(row: Mapping[str, Any], name: str) -> bool:
    if name not in row:
        raise ConversionError(name)
    value = row[name]
    if isinstance(value, bool):
        return value
    # SQLite has no boolean type and may hand back 0/1
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ConversionError(name)


def topic_from_row(row: Row[Any] | Mapping[str, Any]) -> TopicResponse:
    """Map a ``(name, color)`` row."""
    values = _mapping(row)
    return TopicResponse(
        name=_column(values, "name", str),
        color=_column(values, "color", str),
    )


def trending_topic_from_row(row: Row[Any] | Mapping[str, Any]) -> TrendingTopic:
    """Map a ``(name, color, posts)`` row."""
    values = _mapping(row)
    return TrendingTopic(
        name=_column(values, "name", str),
        color=_column(values, "color", str),
        posts=_column(values, "posts", int),
    )


def post_from_row(
    row: Row[Any] | Mapping[str, Any],
    topics: Sequence[TopicResponse],
) -> PostResponse:
    """Map a post listing row.

    The ``saved`` column is only selected for signed-in callers; when it is
    absent the record's ``saved`` stays null.
    """
    values = _mapping(row)
    saved = _flag(values, "saved") if "saved" in values else None
    return PostResponse(
        id=_column(values, "id", int),
        title=_column(values, "title", str),
        body=_column(values, "body", str),
        author=PostAuthor(
            id=_column(values, "author_id", int),
            username=_column(values, "author_name", str),
        ),
        created_at=_column(values, "created_at", datetime),
        topics=list(topics),
        comments=_column(values, "comments", int),
        saves=_column(values, "saves", int),
        saved=saved,
    )


def comment_from_row(row: Row[Any] | Mapping[str, Any]) -> CommentRow:
    """Map a comment-closure row."""
    values = _mapping(row)
    return CommentRow(
        id=_column(values, "id", int),
        parent_id=_optional_column(values, "parent_id", int),
        body=_column(values, "body", str),
        author_id=_column(values, "author_id", int),
        author_name=_column(values, "author_name", str),
        created_at=_column(values, "created_at", datetime),
        replies=_column(values, "replies", int),
    )


def profile_from_row(row: Row[Any] | Mapping[str, Any]) -> UserProfile:
    """Map a user profile row."""
    values = _mapping(row)
    return UserProfile(
        id=_column(values, "id", int),
        username=_column(values, "username", str),
        created_at=_column(values, "created_at", datetime),
        posts=_column(values, "posts", int),
    )

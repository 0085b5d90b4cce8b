"""Pydantic schemas for comment API endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from forum_api.database import BIGINT_MAX
from forum_api.schemas.post import PostAuthor


class CreateCommentRequest(BaseModel):
    """Schema for commenting on a post or replying to a comment."""

    body: str | None = Field(default=None, description="Comment text (max 500 characters)")
    comment_id: int | None = Field(
        default=None,
        ge=1,
        le=BIGINT_MAX,
        description="Comment being replied to; must belong to the same post",
    )


class CommentListingQuery(BaseModel):
    """Sort order for a comment listing."""

    sort: str | None = Field(default=None, description="latest, oldest, highest or lowest")


class CommentCreated(BaseModel):
    """Response after creating a comment."""

    id: int = Field(description="New comment ID")


class CommentResponse(BaseModel):
    """A comment with its nested replies."""

    id: int = Field(description="Comment ID")
    parent_id: int | None = Field(default=None, description="Parent comment ID")
    body: str = Field(description="Comment text")
    author: PostAuthor = Field(description="Comment author")
    created_at: datetime = Field(description="When the comment was created")
    reply_count: int = Field(description="Number of comments anywhere below this one")
    replies: list[CommentResponse] = Field(default_factory=list, description="Direct replies")

"""Pydantic schemas for post API endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from forum_api.schemas.topic import TopicResponse


class CreatePostRequest(BaseModel):
    """Schema for creating a post."""

    title: str | None = Field(default=None, description="Title (max 100 characters)")
    body: str | None = Field(default=None, description="Body (max 1000 characters)")
    topics: list[str] | None = Field(default=None, description="Topic names, at least one")


class PostListingQuery(BaseModel):
    """Filters and paging for post listings."""

    topic: str | None = Field(default=None, description="Only posts tagged with this topic")
    page: int | None = Field(default=None, description="Page number, starting at 1")
    page_size: int | None = Field(default=None, description="Items per page (1-50)")


class UserPostListingQuery(BaseModel):
    """Paging for the posts created or saved by one user."""

    user_id: int = Field(description="User whose posts are listed")
    saved: bool = Field(default=False, description="List saved posts instead of created ones")
    page: int | None = Field(default=None, description="Page number, starting at 1")
    page_size: int | None = Field(default=None, description="Items per page (1-50)")


class PostTarget(BaseModel):
    """Reference to an existing post."""

    post_id: int = Field(description="Post ID")


class PostCreated(BaseModel):
    """Response after creating a post."""

    id: int = Field(description="New post ID")


class PostAuthor(BaseModel):
    """Minimal user info for authorship display."""

    id: int = Field(description="User ID")
    username: str = Field(description="Username")


class PostResponse(BaseModel):
    """A post with its topics and engagement counts."""

    id: int = Field(description="Post ID")
    title: str = Field(description="Title")
    body: str = Field(description="Body")
    author: PostAuthor = Field(description="Post author")
    created_at: datetime = Field(description="When the post was created")
    topics: list[TopicResponse] = Field(default_factory=list, description="Post topics")
    comments: int = Field(description="Number of comments")
    saves: int = Field(description="Number of times the post was saved")
    saved: bool | None = Field(
        default=None, description="Whether the caller saved the post (null when anonymous)"
    )

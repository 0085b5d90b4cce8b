"""Pydantic schemas for request/response validation."""

from forum_api.schemas.comment import (
    CommentCreated,
    CommentListingQuery,
    CommentResponse,
    CreateCommentRequest,
)
from forum_api.schemas.envelope import Envelope, ErrorDetail, ErrorEnvelope
from forum_api.schemas.post import (
    CreatePostRequest,
    PostAuthor,
    PostCreated,
    PostListingQuery,
    PostResponse,
    PostTarget,
    UserPostListingQuery,
)
from forum_api.schemas.topic import TopicResponse, TrendingTopic
from forum_api.schemas.user import (
    AuthResponse,
    CreateAccountRequest,
    LoginRequest,
    SessionUser,
    UserProfile,
)

__all__ = [
    # Envelope schemas
    "Envelope",
    "ErrorDetail",
    "ErrorEnvelope",
    # User schemas
    "AuthResponse",
    "CreateAccountRequest",
    "LoginRequest",
    "SessionUser",
    "UserProfile",
    # Post schemas
    "CreatePostRequest",
    "PostAuthor",
    "PostCreated",
    "PostListingQuery",
    "PostResponse",
    "PostTarget",
    "UserPostListingQuery",
    # Topic schemas
    "TopicResponse",
    "TrendingTopic",
    # Comment schemas
    "CommentCreated",
    "CommentListingQuery",
    "CommentResponse",
    "CreateCommentRequest",
]

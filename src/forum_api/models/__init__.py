"""SQLAlchemy ORM models."""

from forum_api.models.comment import PostComment
from forum_api.models.post import Post, PostTopic, Topic
from forum_api.models.saved_post import SavedPost
from forum_api.models.user import User

__all__ = [
    "Post",
    "PostComment",
    "PostTopic",
    "SavedPost",
    "Topic",
    "User",
]

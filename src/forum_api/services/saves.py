"""Saving and unsaving posts."""

import logging

from sqlalchemy import delete

from forum_api.database import dialect_insert
from forum_api.models.saved_post import SavedPost
from forum_api.pipeline import ExecutionContext, UserT, Validated, WithDb, WithIdentity
from forum_api.schemas.post import PostTarget
from forum_api.services.base import NotFoundError
from forum_api.services.posts import post_exists

logger = logging.getLogger(__name__)


async def validate_post_target(
    payload: PostTarget,
    context: ExecutionContext[WithDb, UserT],
) -> PostTarget:
    """Check that the targeted post exists.

    Raises:
        NotFoundError: If the post does not exist.
    """
    if not await post_exists(context, payload.post_id):
        raise NotFoundError("Post does not exist")
    return payload


async def save_post(validated: Validated[PostTarget, WithIdentity]) -> None:
    """Bookmark a post for the caller. Saving twice keeps a single row."""
    insert_stmt = (
        dialect_insert(validated.session, SavedPost)
        .values(user_id=validated.identity.id, post_id=validated.command.post_id)
        .on_conflict_do_nothing(index_elements=["user_id", "post_id"])
    )
    await validated.session.execute(insert_stmt)
    logger.info("User %s saved post %s", validated.identity.id, validated.command.post_id)


async def unsave_post(validated: Validated[PostTarget, WithIdentity]) -> None:
    """Remove the caller's bookmark. Removing a missing bookmark is a no-op."""
    await validated.session.execute(
        delete(SavedPost).where(
            SavedPost.user_id == validated.identity.id,
            SavedPost.post_id == validated.command.post_id,
        )
    )
    logger.info("User %s unsaved post %s", validated.identity.id, validated.command.post_id)

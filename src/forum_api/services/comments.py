"""Comment creation and comment trees."""

import logging
from dataclasses import dataclass

from sqlalchemy import exists, func, select
from sqlalchemy.orm import aliased

from forum_api.models.comment import PostComment
from forum_api.models.user import User
from forum_api.pipeline import ExecutionContext, UserT, Validated, WithDb, WithIdentity
from forum_api.schemas.comment import CommentListingQuery, CommentResponse, CreateCommentRequest
from forum_api.services.assembler import CommentRow, comment_from_row
from forum_api.services.base import FieldValidationError, NotFoundError
from forum_api.services.checks import max_length, required_text
from forum_api.services.comment_tree import CommentSort, build_comment_tree
from forum_api.services.posts import post_exists

logger = logging.getLogger(__name__)

COMMENT_MAX_LENGTH = 500


@dataclass(frozen=True)
class CommentSubmission:
    """A comment request together with the post it targets."""

    post_id: int
    request: CreateCommentRequest


@dataclass(frozen=True)
class CommentListing:
    """A comment listing request together with the post it targets."""

    post_id: int
    query: CommentListingQuery


@dataclass(frozen=True)
class NewComment:
    """Comment details that passed validation."""

    post_id: int
    parent_id: int | None
    body: str


@dataclass(frozen=True)
class CommentThread:
    """Which post's comments to load, and how to order them."""

    post_id: int
    sort: CommentSort


async def validate_new_comment(
    payload: CommentSubmission,
    context: ExecutionContext[WithDb, WithIdentity],
) -> NewComment:
    """Check the comment text, then that the post and the parent comment exist.

    Raises:
        FieldValidationError: If the text is missing or too long, or the parent
            comment is not part of the post.
        NotFoundError: If the post does not exist.
    """
    body = required_text(payload.request.body, "body", "Comment is required")
    max_length(body, COMMENT_MAX_LENGTH, "body", "Comment should not be more than 500 characters")

    if not await post_exists(context, payload.post_id):
        raise NotFoundError("Post does not exist")

    parent_id = payload.request.comment_id
    if parent_id is not None:
        parent_in_post = await context.session.scalar(
            select(
                exists().where(
                    PostComment.id == parent_id,
                    PostComment.post_id == payload.post_id,
                )
            )
        )
        if not parent_in_post:
            raise FieldValidationError("comment_id", "Comment does not exists in post")

    return NewComment(post_id=payload.post_id, parent_id=parent_id, body=body)


async def create_comment(validated: Validated[NewComment, WithIdentity]) -> int:
    """Insert the comment and return its id."""
    new_comment = validated.command
    session = validated.session

    comment = PostComment(
        post_id=new_comment.post_id,
        user_id=validated.identity.id,
        parent_id=new_comment.parent_id,
        body=new_comment.body,
    )
    session.add(comment)
    await session.flush()

    logger.info(
        "User %s commented on post %s (comment %s, reply to %s)",
        validated.identity.id,
        new_comment.post_id,
        comment.id,
        new_comment.parent_id,
    )
    return comment.id


async def validate_comment_listing(
    payload: CommentListing,
    context: ExecutionContext[WithDb, UserT],
) -> CommentThread:
    """Parse the sort order (default ``latest``) and check the post exists."""
    sort = CommentSort.LATEST
    if payload.query.sort is not None:
        try:
            sort = CommentSort(payload.query.sort.strip().lower())
        except ValueError:
            raise FieldValidationError(
                "sort", "Sort must be one of latest, oldest, highest, lowest"
            ) from None

    if not await post_exists(context, payload.post_id):
        raise NotFoundError("Post does not exist")

    return CommentThread(post_id=payload.post_id, sort=sort)


async def fetch_comment_rows(validated: Validated[CommentThread, UserT]) -> list[CommentRow]:
    """Every comment of the post with its descendant count, in one query.

    A recursive CTE pairs each comment with itself and all comments below it;
    grouping by the ancestor and subtracting the self pair gives the count.
    """
    post_id = validated.command.post_id

    closure = (
        select(
            PostComment.id.label("ancestor_id"),
            PostComment.id.label("descendant_id"),
        )
        .where(PostComment.post_id == post_id)
        .cte("comment_closure", recursive=True)
    )
    child = aliased(PostComment)
    closure = closure.union_all(
        select(closure.c.ancestor_id, child.id).where(child.parent_id == closure.c.descendant_id)
    )
    reply_counts = (
        select(
            closure.c.ancestor_id,
            (func.count() - 1).label("replies"),
        )
        .group_by(closure.c.ancestor_id)
        .subquery()
    )

    query = (
        select(
            PostComment.id,
            PostComment.parent_id.label("parent_id"),
            PostComment.body,
            PostComment.created_at,
            User.id.label("author_id"),
            User.username.label("author_name"),
            reply_counts.c.replies,
        )
        .join(User, User.id == PostComment.user_id)
        .join(reply_counts, reply_counts.c.ancestor_id == PostComment.id)
        .where(PostComment.post_id == post_id)
    )
    result = await validated.session.execute(query)
    return [comment_from_row(row) for row in result.all()]


async def fetch_comments(validated: Validated[CommentThread, UserT]) -> list[CommentResponse]:
    """The post's comments as a reply tree, ordered at every level."""
    rows = await fetch_comment_rows(validated)
    return build_comment_tree(rows, validated.command.sort)

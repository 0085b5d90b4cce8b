"""Post creation and post listings."""

import logging
from collections import defaultdict
from dataclasses import dataclass

from sqlalchemy import Select, exists, func, insert, select

from forum_api.database import BIGINT_MAX
from forum_api.models.comment import PostComment
from forum_api.models.post import Post, PostTopic, Topic
from forum_api.models.saved_post import SavedPost
from forum_api.models.user import User
from forum_api.pipeline import ExecutionContext, UserT, Validated, WithDb, WithIdentity
from forum_api.schemas.post import (
    CreatePostRequest,
    PostListingQuery,
    PostResponse,
    UserPostListingQuery,
)
from forum_api.schemas.topic import TopicResponse
from forum_api.services.assembler import post_from_row, topic_from_row
from forum_api.services.base import FieldValidationError, NotFoundError
from forum_api.services.checks import max_length, positive_int, required_text
from forum_api.services.topics import normalize_topic_names, upsert_topics

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100
BODY_MAX_LENGTH = 1000
TOPIC_MAX_LENGTH = 50
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50


@dataclass(frozen=True)
class NewPost:
    """Post details that passed validation. Topics are normalized and unique."""

    title: str
    body: str
    topics: tuple[str, ...]


@dataclass(frozen=True)
class PostFilter:
    """Which posts a listing returns, and which page of them."""

    topic: str | None = None
    author_id: int | None = None
    saved_by: int | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


async def validate_new_post(
    payload: CreatePostRequest,
    context: ExecutionContext[WithDb, WithIdentity],
) -> NewPost:
    """Check and normalize a new post."""
    title = required_text(payload.title, "title", "Title is required")
    max_length(title, TITLE_MAX_LENGTH, "title", "Title should not be more than 100 characters")

    body = required_text(payload.body, "body", "Body is required")
    max_length(body, BODY_MAX_LENGTH, "body", "Body should not be more than 1000 characters")

    topics = normalize_topic_names(payload.topics or [])
    if not topics:
        raise FieldValidationError("topics", "At least one topic is required")
    for topic in topics:
        max_length(
            topic,
            TOPIC_MAX_LENGTH,
            "topics",
            "Topic names should not be more than 50 characters",
        )

    return NewPost(title=title, body=body, topics=tuple(topics))


async def create_post(validated: Validated[NewPost, WithIdentity]) -> int:
    """Insert the post, upsert its topics and link them.

    All three writes share the command's transaction, so a failure in any of
    them leaves no post behind.
    """
    new_post = validated.command
    session = validated.session

    post = Post(title=new_post.title, body=new_post.body, user_id=validated.identity.id)
    session.add(post)
    await session.flush()

    topic_ids = await upsert_topics(session, new_post.topics)
    await session.execute(
        insert(PostTopic),
        [{"post_id": post.id, "topic_id": topic_ids[name]} for name in new_post.topics],
    )

    logger.info(
        "User %s created post %s with topics %s",
        validated.identity.id,
        post.id,
        ", ".join(new_post.topics),
    )
    return post.id


def _paging(page: int | None, page_size: int | None) -> tuple[int, int]:
    page = positive_int(page, 1, "page", "Page must be at least 1")
    page_size = positive_int(
        page_size,
        DEFAULT_PAGE_SIZE,
        "page_size",
        "Page size must be between 1 and 50",
    )
    if page_size > MAX_PAGE_SIZE:
        raise FieldValidationError("page_size", "Page size must be between 1 and 50")
    if (page - 1) * page_size > BIGINT_MAX:
        raise FieldValidationError("page", "Page is out of range")
    return page, page_size


async def validate_post_listing(
    payload: PostListingQuery,
    context: ExecutionContext[WithDb, UserT],
) -> PostFilter:
    """Check paging and normalize the topic filter."""
    page, page_size = _paging(payload.page, payload.page_size)

    topic = None
    if payload.topic is not None:
        topics = normalize_topic_names([payload.topic])
        if not topics:
            raise FieldValidationError("topic", "Topic must contain letters")
        topic = topics[0]

    return PostFilter(topic=topic, page=page, page_size=page_size)


async def validate_user_post_listing(
    payload: UserPostListingQuery,
    context: ExecutionContext[WithDb, UserT],
) -> PostFilter:
    """Check paging for the posts created or saved by one user."""
    page, page_size = _paging(payload.page, payload.page_size)
    if payload.saved:
        return PostFilter(saved_by=payload.user_id, page=page, page_size=page_size)
    return PostFilter(author_id=payload.user_id, page=page, page_size=page_size)


def _listing_query(post_filter: PostFilter, caller_id: int | None) -> Select:
    comment_count = (
        select(func.count(PostComment.id)).where(PostComment.post_id == Post.id).scalar_subquery()
    )
    save_count = (
        select(func.count(SavedPost.user_id)).where(SavedPost.post_id == Post.id).scalar_subquery()
    )
    columns = [
        Post.id,
        Post.title,
        Post.body,
        Post.created_at,
        User.id.label("author_id"),
        User.username.label("author_name"),
        comment_count.label("comments"),
        save_count.label("saves"),
    ]
    if caller_id is not None:
        saved = exists().where(SavedPost.post_id == Post.id, SavedPost.user_id == caller_id)
        columns.append(saved.label("saved"))

    query = select(*columns).join(User, User.id == Post.user_id)

    if post_filter.topic is not None:
        tagged = (
            select(PostTopic.post_id)
            .join(Topic, Topic.id == PostTopic.topic_id)
            .where(Topic.name == post_filter.topic)
        )
        query = query.where(Post.id.in_(tagged))
    if post_filter.author_id is not None:
        query = query.where(Post.user_id == post_filter.author_id)
    if post_filter.saved_by is not None:
        saved_ids = select(SavedPost.post_id).where(SavedPost.user_id == post_filter.saved_by)
        query = query.where(Post.id.in_(saved_ids))

    return query


async def _post_topics(validated: Validated, post_ids: list[int]) -> dict[int, list[TopicResponse]]:
    if not post_ids:
        return {}

    query = (
        select(PostTopic.post_id, Topic.name, Topic.color)
        .join(Topic, Topic.id == PostTopic.topic_id)
        .where(PostTopic.post_id.in_(post_ids))
        .order_by(Topic.name)
    )
    result = await validated.session.execute(query)

    topics: defaultdict[int, list[TopicResponse]] = defaultdict(list)
    for row in result.all():
        topics[row.post_id].append(topic_from_row(row))
    return topics


async def fetch_posts(validated: Validated[PostFilter, UserT]) -> list[PostResponse]:
    """Posts matching the filter, newest first.

    Records carry a ``saved`` flag only when the caller is signed in.
    """
    post_filter = validated.command
    caller = validated.caller
    offset = (post_filter.page - 1) * post_filter.page_size

    query = (
        _listing_query(post_filter, caller.id if caller else None)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(offset)
        .limit(post_filter.page_size)
    )
    result = await validated.session.execute(query)
    rows = result.all()

    topics = await _post_topics(validated, [row.id for row in rows])
    return [post_from_row(row, topics.get(row.id, [])) for row in rows]


async def fetch_post(validated: Validated[int, UserT]) -> PostResponse:
    """A single post.

    Raises:
        NotFoundError: If the post does not exist.
    """
    post_id = validated.command
    caller = validated.caller

    query = _listing_query(PostFilter(), caller.id if caller else None).where(Post.id == post_id)
    result = await validated.session.execute(query)
    row = result.one_or_none()

    if row is None:
        raise NotFoundError("Post does not exist")

    topics = await _post_topics(validated, [post_id])
    return post_from_row(row, topics.get(post_id, []))


async def post_exists(context: ExecutionContext[WithDb, UserT], post_id: int) -> bool:
    """Whether a post with this id exists."""
    return bool(await context.session.scalar(select(exists().where(Post.id == post_id))))

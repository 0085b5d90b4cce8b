"""Post, comment and save API endpoints."""

import json
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.database import BIGINT_MAX, get_db
from forum_api.pipeline import Pending
from forum_api.schemas.comment import (
    CommentCreated,
    CommentListingQuery,
    CommentResponse,
    CreateCommentRequest,
)
from forum_api.schemas.envelope import Envelope
from forum_api.schemas.post import (
    CreatePostRequest,
    PostCreated,
    PostListingQuery,
    PostResponse,
    PostTarget,
)
from forum_api.services import comments, posts, saves
from forum_api.services.comment_tree import render_comment_forest
from forum_api.utils.security import OptionalIdentity

router = APIRouter(prefix="/posts", tags=["posts"])

PostId = Annotated[int, Path(ge=1, le=BIGINT_MAX, description="Post ID")]


@router.get("", response_model=Envelope[list[PostResponse]])
async def list_posts(
    identity: OptionalIdentity,
    topic: str | None = Query(None, description="Only posts tagged with this topic"),
    page: int | None = Query(None, description="Page number"),
    page_size: int | None = Query(None, description="Items per page"),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[PostResponse]]:
    """List posts, newest first.

    Anonymous callers may list posts; signed-in callers also see whether
    they saved each post.
    """
    listing = PostListingQuery(topic=topic, page=page, page_size=page_size)
    validated = await (
        Pending.of(listing)
        .attach_db(db)
        .attach_optional_identity(identity)
        .validate(posts.validate_post_listing)
    )
    return Envelope(data=await posts.fetch_posts(validated))


@router.post("", response_model=Envelope[PostCreated], status_code=201)
async def create_post(
    identity: OptionalIdentity,
    post_data: CreatePostRequest,
    db: AsyncSession = Depends(get_db),
) -> Envelope[PostCreated]:
    """Create a post with its topics.

    Topic names are normalized; new topics get a color, existing ones keep theirs.
    Requires authentication.
    """
    validated = await (
        Pending.of(post_data)
        .attach_db(db)
        .attach_identity(identity)
        .validate(posts.validate_new_post)
    )
    post_id = await posts.create_post(validated)
    return Envelope(data=PostCreated(id=post_id))


@router.get("/{post_id}", response_model=Envelope[PostResponse])
async def get_post(
    post_id: PostId,
    identity: OptionalIdentity,
    db: AsyncSession = Depends(get_db),
) -> Envelope[PostResponse]:
    """Get a single post."""
    validated = Pending.of(post_id).attach_db(db).attach_optional_identity(identity).accept()
    return Envelope(data=await posts.fetch_post(validated))


@router.post("/{post_id}/save", response_model=Envelope[None])
async def save_post(
    post_id: PostId,
    identity: OptionalIdentity,
    db: AsyncSession = Depends(get_db),
) -> Envelope[None]:
    """Save (bookmark) a post. Saving an already saved post succeeds.

    Requires authentication.
    """
    validated = await (
        Pending.of(PostTarget(post_id=post_id))
        .attach_db(db)
        .attach_identity(identity)
        .validate(saves.validate_post_target)
    )
    await saves.save_post(validated)
    return Envelope(message="Post saved")


@router.delete("/{post_id}/save", response_model=Envelope[None])
async def unsave_post(
    post_id: PostId,
    identity: OptionalIdentity,
    db: AsyncSession = Depends(get_db),
) -> Envelope[None]:
    """Remove a saved post. Unsaving a post that was never saved succeeds.

    Requires authentication.
    """
    validated = await (
        Pending.of(PostTarget(post_id=post_id))
        .attach_db(db)
        .attach_identity(identity)
        .validate(saves.validate_post_target)
    )
    await saves.unsave_post(validated)
    return Envelope(message="Post unsaved")


@router.get("/{post_id}/comments", response_model=Envelope[list[CommentResponse]])
async def list_comments(
    post_id: PostId,
    sort: str | None = Query(None, description="latest (default), oldest, highest or lowest"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Get a post's comments as a reply tree.

    The sort order applies to every level of the tree. The tree is written
    out without nesting models, so reply chains of any depth can be returned.
    """
    listing = comments.CommentListing(post_id=post_id, query=CommentListingQuery(sort=sort))
    validated = await Pending.of(listing).attach_db(db).validate(comments.validate_comment_listing)
    tree = await comments.fetch_comments(validated)

    envelope = json.dumps(Envelope[None]().model_dump(mode="json", exclude={"data"}))
    content = envelope[:-1] + ',"data":' + render_comment_forest(tree) + "}"
    return Response(content=content, media_type="application/json")


@router.post("/{post_id}/comments", response_model=Envelope[CommentCreated], status_code=201)
async def create_comment(
    post_id: PostId,
    identity: OptionalIdentity,
    comment_data: CreateCommentRequest,
    db: AsyncSession = Depends(get_db),
) -> Envelope[CommentCreated]:
    """Comment on a post, or reply to one of its comments.

    Requires authentication.
    """
    submission = comments.CommentSubmission(post_id=post_id, request=comment_data)
    validated = await (
        Pending.of(submission)
        .attach_db(db)
        .attach_identity(identity)
        .validate(comments.validate_new_comment)
    )
    comment_id = await comments.create_comment(validated)
    return Envelope(data=CommentCreated(id=comment_id))

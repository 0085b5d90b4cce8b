"""User profile API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.database import BIGINT_MAX, get_db
from forum_api.pipeline import Pending
from forum_api.schemas.envelope import Envelope
from forum_api.schemas.post import PostResponse, UserPostListingQuery
from forum_api.schemas.user import UserProfile
from forum_api.services import accounts, posts
from forum_api.utils.security import OptionalIdentity

router = APIRouter(prefix="/users", tags=["users"])

UserId = Annotated[int, Path(ge=1, le=BIGINT_MAX, description="User ID")]


@router.get("/{user_id}", response_model=Envelope[UserProfile])
async def get_user(
    user_id: UserId,
    db: AsyncSession = Depends(get_db),
) -> Envelope[UserProfile]:
    """Get a user's public profile."""
    validated = Pending.of(user_id).attach_db(db).accept()
    return Envelope(data=await accounts.fetch_user_profile(validated))


async def _user_posts(
    listing: UserPostListingQuery,
    identity: OptionalIdentity,
    db: AsyncSession,
) -> Envelope[list[PostResponse]]:
    validated = await (
        Pending.of(listing)
        .attach_db(db)
        .attach_optional_identity(identity)
        .validate(posts.validate_user_post_listing)
    )
    return Envelope(data=await posts.fetch_posts(validated))


@router.get("/{user_id}/posts", response_model=Envelope[list[PostResponse]])
async def list_user_posts(
    user_id: UserId,
    identity: OptionalIdentity,
    page: int | None = Query(None, description="Page number"),
    page_size: int | None = Query(None, description="Items per page"),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[PostResponse]]:
    """List the posts a user created, newest first."""
    listing = UserPostListingQuery(user_id=user_id, page=page, page_size=page_size)
    return await _user_posts(listing, identity, db)


@router.get("/{user_id}/saves", response_model=Envelope[list[PostResponse]])
async def list_user_saves(
    user_id: UserId,
    identity: OptionalIdentity,
    page: int | None = Query(None, description="Page number"),
    page_size: int | None = Query(None, description="Items per page"),
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[PostResponse]]:
    """List the posts a user saved, newest first."""
    listing = UserPostListingQuery(user_id=user_id, saved=True, page=page, page_size=page_size)
    return await _user_posts(listing, identity, db)

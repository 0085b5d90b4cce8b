"""Topic API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.config import get_settings
from forum_api.database import get_db
from forum_api.pipeline import Pending
from forum_api.schemas.envelope import Envelope
from forum_api.schemas.topic import TrendingTopic
from forum_api.services.topics import TrendingWindow, fetch_trending_topics

router = APIRouter(prefix="/topics", tags=["topics"])


@router.get("/trending", response_model=Envelope[list[TrendingTopic]])
async def trending_topics(
    db: AsyncSession = Depends(get_db),
) -> Envelope[list[TrendingTopic]]:
    """Get the most used topics of recent posts (last 48 hours by default)."""
    settings = get_settings()
    window = TrendingWindow(hours=settings.trending_window_hours, limit=settings.trending_limit)
    return Envelope(data=await fetch_trending_topics(Pending.of(window).attach_db(db).accept()))

"""Topic normalization, upserts and trending topics."""

import logging
import random
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.database import dialect_insert, utc_now
from forum_api.models.post import Post, PostTopic, Topic
from forum_api.pipeline import UserT, Validated
from forum_api.schemas.topic import TrendingTopic
from forum_api.services.assembler import trending_topic_from_row

logger = logging.getLogger(__name__)

# Colors handed out to new topics
TOPIC_COLORS: tuple[str, ...] = (
    "red",
    "orange",
    "yellow",
    "green",
    "blue",
    "purple",
    "pink",
)

_NON_LETTERS = re.compile(r"[^A-Za-z\s]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_topic_name(name: str) -> str:
    """Normalize a topic name.

    Non-letters are stripped, whitespace is trimmed and collapsed, and the
    result is lower-cased with the first letter capitalized:
    ``"  c++ programming!! "`` becomes ``"C programming"``. Names with no
    letters normalize to ``""``.
    """
    letters = _NON_LETTERS.sub("", name)
    collapsed = _WHITESPACE.sub(" ", letters).strip()
    return collapsed.capitalize()


def normalize_topic_names(names: Iterable[str]) -> list[str]:
    """Normalize names, dropping empty results and duplicates (first occurrence wins)."""
    normalized: list[str] = []
    for name in names:
        topic = normalize_topic_name(name)
        if topic and topic not in normalized:
            normalized.append(topic)
    return normalized


def pick_color() -> str:
    """Choose a color for a new topic."""
    return random.choice(TOPIC_COLORS)


async def upsert_topics(session: AsyncSession, names: Sequence[str]) -> dict[str, int]:
    """Make sure every topic exists and return their ids by name.

    New topics get a random color. Existing topics keep the color they were
    created with: the insert does nothing on a name conflict.
    """
    if not names:
        return {}

    insert_stmt = (
        dialect_insert(session, Topic)
        .values([{"name": name, "color": pick_color(), "created_at": utc_now()} for name in names])
        .on_conflict_do_nothing(index_elements=["name"])
    )
    await session.execute(insert_stmt)

    result = await session.execute(select(Topic.name, Topic.id).where(Topic.name.in_(names)))
    return {name: topic_id for name, topic_id in result.all()}


@dataclass(frozen=True)
class TrendingWindow:
    """How far back trending topics look, and how many to return."""

    hours: int
    limit: int


async def fetch_trending_topics(validated: Validated[TrendingWindow, UserT]) -> list[TrendingTopic]:
    """Topics most used by posts created inside the trending window.

    Ordered by usage count descending, then name; capped at the window's limit.
    """
    window = validated.command
    cutoff = utc_now() - timedelta(hours=window.hours)

    usage = func.count(PostTopic.post_id).label("posts")
    query = (
        select(Topic.name, Topic.color, usage)
        .join(PostTopic, PostTopic.topic_id == Topic.id)
        .join(Post, Post.id == PostTopic.post_id)
        .where(Post.created_at >= cutoff)
        .group_by(Topic.id, Topic.name, Topic.color)
        .order_by(usage.desc(), Topic.name)
        .limit(window.limit)
    )
    result = await validated.session.execute(query)
    return [trending_topic_from_row(row) for row in result.all()]

"""Pydantic schemas for topics."""

from pydantic import BaseModel, Field


class TopicResponse(BaseModel):
    """A topic attached to a post."""

    name: str = Field(description="Normalized topic name")
    color: str = Field(description="Display color")


class TrendingTopic(TopicResponse):
    """A topic with its recent usage count."""

    posts: int = Field(description="Posts tagged with the topic inside the trending window")

"""
Take-related Pydantic schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from services.content_filter import MAX_CONTENT_LENGTH, MIN_CONTENT_LENGTH


class TakeSortEnum(str, Enum):
    """Feed orderings."""

    CONTROVERSIAL = "controversial"
    FRESH = "fresh"
    TRENDING = "trending"  # decayed by age
    TOP_AGREED = "top_agreed"
    TOP_DISAGREED = "top_disagreed"


class TakeCreate(BaseModel):
    """Schema for posting a take."""

    content: str = Field(..., min_length=MIN_CONTENT_LENGTH, max_length=MAX_CONTENT_LENGTH)
    category: str = Field(..., min_length=1, max_length=50)
    device_fingerprint: Optional[str] = Field(
        None, min_length=1, max_length=64, description="Falls back to the X-Device-Fingerprint header"
    )

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: Any) -> Any:
        """Length bounds apply to the trimmed text."""
        return v.strip() if isinstance(v, str) else v


class TakeResponse(BaseModel):
    """A take as shown in the feed, with derived display metrics."""

    id: str
    content: str
    category: str
    created_at: datetime
    agree_count: int = 0
    disagree_count: int = 0
    total_votes: int = 0
    controversy_score: Optional[float] = None

    agree_percentage: int = 50
    disagree_percentage: int = 50
    is_controversial: bool = False
    controversy_level: str = "Clear Consensus"

    user_vote: Optional[str] = Field(None, description="This device's vote, when a fingerprint was supplied")

    model_config = {"from_attributes": True}


class TakeCreateResponse(BaseModel):
    """Response after successfully posting a take."""

    success: bool = True
    message: str
    take: TakeResponse


class TakeListResponse(BaseModel):
    """One page of the feed."""

    items: list[TakeResponse]
    has_more: bool
    next_cursor: Optional[str] = None


class TakeVisibilityUpdate(BaseModel):
    """Moderator hide/unhide request."""

    hidden: bool
    reason: Optional[str] = Field(None, max_length=200)


class TakeVisibilityResponse(BaseModel):
    take_id: str
    is_hidden: bool
    hidden_reason: Optional[str] = None

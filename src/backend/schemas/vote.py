"""
Vote-related Pydantic schemas.

One vote per device per take; votes cannot be changed or retracted.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from models.vote import VoteType

CAMEL_CONFIG = {"populate_by_name": True, "alias_generator": to_camel}

MAX_BATCH_TAKE_IDS = 100


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    take_id: UUID
    vote_type: VoteType
    device_fingerprint: Optional[str] = Field(None, min_length=1, max_length=64)

    model_config = CAMEL_CONFIG


class VoteRecord(BaseModel):
    """Stored vote, without the voter's identity."""

    id: str
    take_id: str
    vote_type: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class VoteCounts(BaseModel):
    agree: int = 0
    disagree: int = 0
    total: int = 0


class VoteResponse(BaseModel):
    """Response after successfully casting a vote."""

    success: bool = True
    message: str
    vote: VoteRecord
    counts: Optional[VoteCounts] = None
    controversy_score: Optional[float] = None


class VoteCheckRequest(BaseModel):
    """Which of these takes has this device voted on?"""

    take_ids: list[UUID] = Field(..., max_length=MAX_BATCH_TAKE_IDS)
    device_fingerprint: Optional[str] = Field(None, min_length=1, max_length=64)

    model_config = CAMEL_CONFIG


class VoteCheckResponse(BaseModel):
    """take_id -> vote_type; takes without a vote are omitted."""

    votes: dict[str, str]


class VoteStatus(BaseModel):
    """Whether this device has voted on a single take."""

    take_id: str
    voted: bool
    vote_type: Optional[str] = None


class VoteCountsRequest(BaseModel):
    take_ids: list[UUID] = Field(..., max_length=MAX_BATCH_TAKE_IDS)

    model_config = CAMEL_CONFIG


class VoteCountsResponse(BaseModel):
    """take_id -> tallies; unknown takes are omitted."""

    counts: dict[str, VoteCounts]

"""
Take model for PostgreSQL storage.

A take is a short anonymous opinion. Vote tallies are denormalized onto the
row and only ever changed through atomic UPDATE statements
(see TakeRepository.increment_vote_count).
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class Take(Base):
    """Posted opinion with denormalized vote counts."""

    __tablename__ = "takes"

    __table_args__ = (
        CheckConstraint("total_votes = agree_count + disagree_count", name="ck_takes_total_votes"),
        # Feed queries always filter on is_hidden first
        Index("ix_takes_hidden_created", "is_hidden", "created_at"),
        Index("ix_takes_hidden_controversy", "is_hidden", "controversy_score"),
        Index("ix_takes_hidden_total_votes", "is_hidden", "total_votes"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    content: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    # Aggregated results
    agree_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    disagree_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_votes: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    controversy_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Moderation
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    hidden_reason: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Origin identity (never the raw IP)
    device_fingerprint: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ip_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

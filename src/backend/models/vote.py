"""
Vote model for PostgreSQL storage.

One vote per (take, device fingerprint). The unique constraint is what makes
the duplicate check race-safe; the application-level lookup only exists to
return a friendly error before attempting the insert.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class VoteType(str, Enum):
    """Direction of a vote."""

    AGREE = "agree"
    DISAGREE = "disagree"


class Vote(Base):
    """Immutable vote record."""

    __tablename__ = "votes"

    __table_args__ = (
        UniqueConstraint("take_id", "device_fingerprint", name="uq_votes_take_fingerprint"),
        Index("ix_votes_fingerprint_take", "device_fingerprint", "take_id"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    take_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("takes.id", ondelete="CASCADE"),
        index=True,
    )
    vote_type: Mapped[str] = mapped_column(String(10))

    device_fingerprint: Mapped[str] = mapped_column(String(64))
    ip_hash: Mapped[str] = mapped_column(String(64), index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

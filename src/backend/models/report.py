"""
Report model for PostgreSQL storage.

Reports feed the moderation queue. Pending reports also drive automatic
hiding of a take once AUTO_HIDE_REPORT_THRESHOLD is reached.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base


class ReportReason(str, Enum):
    """Why a take was reported."""

    HATE_SPEECH = "hate_speech"
    HARASSMENT = "harassment"
    SPAM = "spam"
    OFF_TOPIC = "off_topic"
    MISINFORMATION = "misinformation"
    OTHER = "other"


class ReportStatus(str, Enum):
    """Moderation lifecycle of a report."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    ACTIONED = "actioned"
    DISMISSED = "dismissed"


class Report(Base):
    """Abuse report against a take."""

    __tablename__ = "reports"

    __table_args__ = (
        # Used by the auto-hide recount after every new report
        Index("ix_reports_take_status", "take_id", "status"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    take_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("takes.id", ondelete="CASCADE"),
    )
    reason: Mapped[str] = mapped_column(String(30))
    additional_info: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=ReportStatus.PENDING.value,
        server_default=ReportStatus.PENDING.value,
        index=True,
    )
    reported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )

    # Audit
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Reporter identity, kept for moderation audit only
    device_fingerprint: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ip_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

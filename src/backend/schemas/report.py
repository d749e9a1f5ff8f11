"""
Report-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from models.report import ReportReason, ReportStatus


class ReportCreate(BaseModel):
    """Schema for reporting a take."""

    take_id: UUID
    reason: ReportReason
    additional_info: Optional[str] = Field(None, max_length=500)
    device_fingerprint: Optional[str] = Field(None, min_length=1, max_length=64)

    model_config = {"populate_by_name": True, "alias_generator": to_camel}


class ReportRecord(BaseModel):
    """Report as returned to clients and moderators. Reporter identity is never included."""

    id: str
    take_id: str
    reason: str
    additional_info: Optional[str] = None
    status: str
    reported_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReportResponse(BaseModel):
    """Response after successfully filing a report."""

    success: bool = True
    message: str
    report: ReportRecord
    take_hidden: bool = Field(False, description="True when this report pushed the take over the auto-hide threshold")


class ReportStatusUpdate(BaseModel):
    """Moderator decision on a report."""

    status: ReportStatus
    reviewed_by: Optional[str] = Field(None, max_length=100)

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

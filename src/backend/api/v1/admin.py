"""
Admin endpoints for moderation.

These endpoints require the X-Admin-Token header and are used for:
- Reviewing the report queue
- Inspecting reports filed against a take
- Hiding and unhiding takes
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from api.deps import get_moderation_service, require_admin
from models.report import ReportStatus
from schemas.report import ReportRecord, ReportStatusUpdate
from schemas.take import TakeVisibilityResponse, TakeVisibilityUpdate
from services.moderation import ModerationService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/reports", response_model=list[ReportRecord])
async def list_reports(
    status: Optional[ReportStatus] = None,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    service: ModerationService = Depends(get_moderation_service),
) -> list[ReportRecord]:
    """Report queue, newest first, optionally filtered by status."""
    reports = await service.list_reports(status=status, offset=offset, limit=limit)
    return [ReportRecord.model_validate(r) for r in reports]


@router.patch("/reports/{report_id}", response_model=ReportRecord)
async def update_report(
    report_id: UUID,
    update_data: ReportStatusUpdate,
    service: ModerationService = Depends(get_moderation_service),
) -> ReportRecord:
    """Record a moderator decision on a report."""
    report = await service.update_report_status(
        str(report_id),
        update_data.status,
        reviewed_by=update_data.reviewed_by,
    )
    return ReportRecord.model_validate(report)


@router.get("/takes/{take_id}/reports", response_model=list[ReportRecord])
async def list_take_reports(
    take_id: UUID,
    service: ModerationService = Depends(get_moderation_service),
) -> list[ReportRecord]:
    reports = await service.list_reports_for_take(str(take_id))
    return [ReportRecord.model_validate(r) for r in reports]


@router.post("/takes/{take_id}/visibility", response_model=TakeVisibilityResponse)
async def set_take_visibility(
    take_id: UUID,
    visibility: TakeVisibilityUpdate,
    service: ModerationService = Depends(get_moderation_service),
) -> TakeVisibilityResponse:
    """Hide or unhide a take."""
    await service.set_take_visibility(str(take_id), visibility.hidden, visibility.reason)
    return TakeVisibilityResponse(
        take_id=str(take_id),
        is_hidden=visibility.hidden,
        hidden_reason=visibility.reason if visibility.hidden else None,
    )

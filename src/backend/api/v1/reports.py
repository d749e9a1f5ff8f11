"""
Report endpoints.

Reports are anonymous. Enough pending reports hide a take until a moderator
reviews it.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status

from api.deps import get_admission_service, get_header_fingerprint, get_ip_hash, resolve_identity
from schemas.report import ReportCreate, ReportRecord, ReportResponse
from services.admission import AdmissionService

router = APIRouter()


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: ReportCreate,
    header_fingerprint: Annotated[Optional[str], Depends(get_header_fingerprint)],
    ip_hash: Annotated[str, Depends(get_ip_hash)],
    service: AdmissionService = Depends(get_admission_service),
) -> ReportResponse:
    """Report a take for moderation."""
    identity = resolve_identity(report_data.device_fingerprint, header_fingerprint, ip_hash)

    outcome = await service.create_report(
        take_id=str(report_data.take_id),
        reason=report_data.reason,
        additional_info=report_data.additional_info,
        device_fingerprint=identity.device_fingerprint,
        ip_hash=identity.ip_hash,
    )

    return ReportResponse(
        message="Report submitted successfully",
        report=ReportRecord.model_validate(outcome.report),
        take_hidden=outcome.take_hidden,
    )

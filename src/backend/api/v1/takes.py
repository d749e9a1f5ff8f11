"""
Take endpoints.

Anyone can post and read takes; posting is limited per device and address.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from api.deps import get_admission_service, get_header_fingerprint, get_ip_hash, resolve_identity
from core.config import settings
from schemas.take import TakeCreate, TakeCreateResponse, TakeListResponse, TakeResponse, TakeSortEnum
from services.admission import AdmissionService, build_take_response

router = APIRouter()


@router.post("", response_model=TakeCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_take(
    take_data: TakeCreate,
    header_fingerprint: Annotated[Optional[str], Depends(get_header_fingerprint)],
    ip_hash: Annotated[str, Depends(get_ip_hash)],
    service: AdmissionService = Depends(get_admission_service),
) -> TakeCreateResponse:
    """
    Post a new take.

    The content is sanitized before validation; the stored text is the
    sanitized version.
    """
    identity = resolve_identity(take_data.device_fingerprint, header_fingerprint, ip_hash)

    take = await service.create_take(
        content=take_data.content,
        category=take_data.category,
        device_fingerprint=identity.device_fingerprint,
        ip_hash=identity.ip_hash,
    )

    return TakeCreateResponse(
        message="Take created successfully",
        take=build_take_response(take, minimum_votes=settings.CONTROVERSY_MIN_VOTES),
    )


@router.get("", response_model=TakeListResponse)
async def list_takes(
    header_fingerprint: Annotated[Optional[str], Depends(get_header_fingerprint)],
    sort: TakeSortEnum = TakeSortEnum.CONTROVERSIAL,
    category: Optional[str] = Query(None, max_length=50),
    limit: int = Query(20, ge=1, le=100),
    cursor: Optional[str] = Query(None, max_length=200),
    service: AdmissionService = Depends(get_admission_service),
) -> TakeListResponse:
    """
    Page through visible takes.

    When the device fingerprint header is present, each take carries this
    device's vote.
    """
    return await service.get_takes(
        sort=sort.value,
        category=category,
        limit=limit,
        cursor=cursor,
        device_fingerprint=header_fingerprint,
    )


@router.get("/{take_id}", response_model=TakeResponse)
async def get_take(
    take_id: UUID,
    header_fingerprint: Annotated[Optional[str], Depends(get_header_fingerprint)],
    service: AdmissionService = Depends(get_admission_service),
) -> TakeResponse:
    """Get a single visible take."""
    take = await service.get_take(str(take_id))

    user_vote = None
    if header_fingerprint:
        vote_status = await service.check_user_vote(str(take_id), header_fingerprint)
        user_vote = vote_status["vote_type"]

    return build_take_response(take, user_vote, settings.CONTROVERSY_MIN_VOTES)

"""
Vote endpoints.

One vote per device per take. Votes are final: there is no change or
retraction endpoint.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from api.deps import get_admission_service, get_header_fingerprint, get_ip_hash, resolve_identity
from schemas.vote import (
    VoteCheckRequest,
    VoteCheckResponse,
    VoteCounts,
    VoteCountsRequest,
    VoteCountsResponse,
    VoteCreate,
    VoteRecord,
    VoteResponse,
    VoteStatus,
)
from services.admission import AdmissionService

router = APIRouter()


@router.post("", response_model=VoteResponse, status_code=status.HTTP_201_CREATED)
async def cast_vote(
    vote_data: VoteCreate,
    header_fingerprint: Annotated[Optional[str], Depends(get_header_fingerprint)],
    ip_hash: Annotated[str, Depends(get_ip_hash)],
    service: AdmissionService = Depends(get_admission_service),
) -> VoteResponse:
    """
    Cast a vote on a take.

    Order of checks:
    1. Rate limit (100 votes per hour)
    2. Duplicate check for this device
    3. Insert, then atomic tally update
    """
    identity = resolve_identity(vote_data.device_fingerprint, header_fingerprint, ip_hash)

    outcome = await service.create_vote(
        take_id=str(vote_data.take_id),
        vote_type=vote_data.vote_type,
        device_fingerprint=identity.device_fingerprint,
        ip_hash=identity.ip_hash,
    )

    counts = None
    controversy_score = None
    if outcome.counts:
        counts = VoteCounts(
            agree=outcome.counts["agree_count"],
            disagree=outcome.counts["disagree_count"],
            total=outcome.counts["total_votes"],
        )
        controversy_score = outcome.counts["controversy_score"]

    return VoteResponse(
        message="Vote submitted successfully",
        vote=VoteRecord.model_validate(outcome.vote),
        counts=counts,
        controversy_score=controversy_score,
    )


@router.post("/check", response_model=VoteCheckResponse)
async def check_votes(
    check_data: VoteCheckRequest,
    header_fingerprint: Annotated[Optional[str], Depends(get_header_fingerprint)],
    service: AdmissionService = Depends(get_admission_service),
) -> VoteCheckResponse:
    """Which of the given takes this device has voted on, and how."""
    fingerprint = check_data.device_fingerprint or header_fingerprint
    if not fingerprint:
        return VoteCheckResponse(votes={})

    votes = await service.check_user_votes([str(t) for t in check_data.take_ids], fingerprint)
    return VoteCheckResponse(votes=votes)


@router.get("/status/{take_id}", response_model=VoteStatus)
async def get_vote_status(
    take_id: UUID,
    header_fingerprint: Annotated[Optional[str], Depends(get_header_fingerprint)],
    service: AdmissionService = Depends(get_admission_service),
) -> VoteStatus:
    """Whether this device has voted on a take."""
    if not header_fingerprint:
        return VoteStatus(take_id=str(take_id), voted=False)

    result = await service.check_user_vote(str(take_id), header_fingerprint)
    return VoteStatus(take_id=str(take_id), **result)


@router.post("/counts", response_model=VoteCountsResponse)
async def get_vote_counts(
    counts_data: VoteCountsRequest,
    service: AdmissionService = Depends(get_admission_service),
) -> VoteCountsResponse:
    """Current tallies for a batch of takes."""
    counts = await service.get_vote_counts([str(t) for t in counts_data.take_ids])
    return VoteCountsResponse(counts={k: VoteCounts(**v) for k, v in counts.items()})

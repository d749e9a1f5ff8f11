"""
Admission control for anonymous writes.

Every write runs its checks in a fixed order and stops at the first
rejection, so a rejected request never touches storage:

- take:   sanitize -> validate content -> rate limit -> insert
- vote:   rate limit -> duplicate check -> insert (ON CONFLICT DO NOTHING)
          -> atomic counter update
- report: rate limit -> insert -> count pending -> auto-hide at threshold

Request shape (UUIDs, enums, lengths) is validated by the schemas before
any of this runs.
"""

import base64
import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    ContentHiddenError,
    ContentValidationError,
    DatabaseError,
    DuplicateVoteError,
    NotFoundError,
    RateLimitExceededError,
    ValidationError,
)
from core.logging import short_id
from models.report import Report, ReportReason
from models.take import Take
from models.vote import Vote, VoteType
from repositories.report_repository import ReportRepository
from repositories.take_repository import TakeRepository, TakeSort
from repositories.vote_repository import VoteRepository
from schemas.take import TakeListResponse, TakeResponse
from services.content_filter import ContentCategory, ContentPolicy, sanitize_content, validate_content
from services.controversy import (
    DEFAULT_MIN_VOTES,
    calculate_trending_score,
    calculate_vote_percentages,
    get_controversy_level,
    is_controversial,
)
from services.rate_limiter import RateLimitAction, RateLimiter, RateLimitResult

logger = structlog.get_logger(__name__)

AUTO_HIDE_REASON = "Auto-hidden due to multiple reports (pending review)"
DEFAULT_AUTO_HIDE_THRESHOLD = 10
DEFAULT_TRENDING_CANDIDATE_LIMIT = 500
# Deepest offset a feed cursor may point at
MAX_CURSOR_OFFSET = 10_000


# =============================================================================
# Pagination cursors
# =============================================================================


def encode_cursor(offset: int) -> str:
    """Opaque cursor for the next page."""
    payload = json.dumps({"offset": offset}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii")


def decode_cursor(cursor: Optional[str]) -> int:
    """Offset encoded in a cursor. A missing cursor is the first page."""
    if not cursor:
        return 0
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        offset = data["offset"]
    except (ValueError, KeyError, TypeError):
        raise ValidationError("Invalid cursor") from None
    if isinstance(offset, bool) or not isinstance(offset, int) or not 0 <= offset <= MAX_CURSOR_OFFSET:
        raise ValidationError("Invalid cursor")
    return offset


# =============================================================================
# Presentation
# =============================================================================


def build_take_response(
    take: Take,
    user_vote: Optional[str] = None,
    minimum_votes: int = DEFAULT_MIN_VOTES,
) -> TakeResponse:
    """Attach derived display metrics to a stored take."""
    agree = take.agree_count or 0
    disagree = take.disagree_count or 0
    agree_pct, disagree_pct = calculate_vote_percentages(agree, disagree)

    return TakeResponse(
        id=str(take.id),
        content=take.content,
        category=take.category,
        created_at=take.created_at,
        agree_count=agree,
        disagree_count=disagree,
        total_votes=take.total_votes or 0,
        controversy_score=take.controversy_score,
        agree_percentage=agree_pct,
        disagree_percentage=disagree_pct,
        is_controversial=is_controversial(agree, disagree, minimum_votes),
        controversy_level=get_controversy_level(take.controversy_score),
        user_vote=user_vote,
    )


@dataclass
class VoteOutcome:
    vote: Vote
    counts: Optional[dict]


@dataclass
class ReportOutcome:
    report: Report
    take_hidden: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdmissionService:
    """Validates, rate limits and persists anonymous takes, votes and reports."""

    def __init__(
        self,
        db: AsyncSession,
        rate_limiter: RateLimiter,
        content_policy: Optional[ContentPolicy] = None,
        auto_hide_threshold: int = DEFAULT_AUTO_HIDE_THRESHOLD,
        controversy_min_votes: int = DEFAULT_MIN_VOTES,
        trending_candidate_limit: int = DEFAULT_TRENDING_CANDIDATE_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.rate_limiter = rate_limiter
        self.content_policy = content_policy
        self.auto_hide_threshold = auto_hide_threshold
        self.controversy_min_votes = controversy_min_votes
        self.trending_candidate_limit = trending_candidate_limit
        self._clock = clock

        self.takes = TakeRepository(db)
        self.votes = VoteRepository(db)
        self.reports = ReportRepository(db)

    async def _enforce_rate_limit(
        self,
        action: RateLimitAction,
        device_fingerprint: str,
        ip_hash: str,
    ) -> RateLimitResult:
        result = await self.rate_limiter.check(action, device_fingerprint, ip_hash)
        if result.allowed:
            return result

        retry_after = self.rate_limiter.retry_after(result)
        minutes = math.ceil(retry_after / 60)
        if action == RateLimitAction.POST:
            message = f"Rate limit exceeded. You can post again in {minutes} minutes."
        else:
            message = f"Rate limit exceeded. Please try again in {minutes} minutes."
        raise RateLimitExceededError(retry_after=retry_after, message=message)

    # =========================================================================
    # Takes
    # =========================================================================

    async def create_take(
        self,
        content: str,
        category: str,
        device_fingerprint: str,
        ip_hash: str,
    ) -> Take:
        """Post a new take. The stored content is the sanitized text."""
        sanitized = sanitize_content(content)

        validation = validate_content(sanitized, self.content_policy)
        if not validation.is_valid:
            logger.info(
                "take_rejected",
                category=validation.category.value,
                fingerprint=short_id(device_fingerprint),
            )
            if validation.category == ContentCategory.LENGTH:
                raise ValidationError(validation.reason)
            raise ContentValidationError(validation.reason)

        await self._enforce_rate_limit(RateLimitAction.POST, device_fingerprint, ip_hash)

        try:
            take = await self.takes.create(
                content=sanitized,
                category=category,
                device_fingerprint=device_fingerprint,
                ip_hash=ip_hash,
            )
        except SQLAlchemyError as e:
            logger.error("take_create_failed", error=str(e))
            raise DatabaseError("Failed to create take") from e

        logger.info(
            "take_created",
            take_id=take.id,
            category=category,
            fingerprint=short_id(device_fingerprint),
        )
        return take

    async def get_take(self, take_id: str) -> Take:
        take = await self.takes.get_by_id(take_id)
        if take is None:
            raise NotFoundError("Take not found")
        if take.is_hidden:
            raise ContentHiddenError()
        return take

    async def get_takes(
        self,
        sort: str = TakeSort.CONTROVERSIAL,
        category: Optional[str] = None,
        limit: int = 20,
        cursor: Optional[str] = None,
        device_fingerprint: Optional[str] = None,
    ) -> TakeListResponse:
        """
        One page of visible takes.

        Trending re-ranks a bounded window of the most-voted takes by their
        decayed score, so takes outside that window never trend.
        """
        offset = decode_cursor(cursor)

        if sort == TakeSort.TRENDING:
            candidates = await self.takes.list_trending_candidates(
                category=category,
                limit=self.trending_candidate_limit,
            )
            now = self._clock()
            ranked = sorted(
                candidates,
                key=lambda t: (calculate_trending_score(t.total_votes or 0, t.created_at, now), t.created_at),
                reverse=True,
            )
            page = ranked[offset : offset + limit + 1]
        else:
            page = await self.takes.list_visible(
                sort=sort,
                category=category,
                offset=offset,
                limit=limit + 1,
            )

        next_offset = offset + limit
        has_more = len(page) > limit and next_offset <= MAX_CURSOR_OFFSET
        items = page[:limit]

        user_votes: dict[str, str] = {}
        if device_fingerprint and items:
            user_votes = await self.votes.get_user_votes([str(t.id) for t in items], device_fingerprint)

        return TakeListResponse(
            items=[
                build_take_response(t, user_votes.get(str(t.id)), self.controversy_min_votes)
                for t in items
            ],
            has_more=has_more,
            next_cursor=encode_cursor(next_offset) if has_more else None,
        )

    # =========================================================================
    # Votes
    # =========================================================================

    async def create_vote(
        self,
        take_id: str,
        vote_type: VoteType | str,
        device_fingerprint: str,
        ip_hash: str,
    ) -> VoteOutcome:
        """Cast a vote. A device gets exactly one vote per take."""
        await self._enforce_rate_limit(RateLimitAction.VOTE, device_fingerprint, ip_hash)

        if await self.votes.exists_for_device(take_id, device_fingerprint):
            raise DuplicateVoteError()

        try:
            vote = await self.votes.create(
                take_id=take_id,
                vote_type=vote_type,
                device_fingerprint=device_fingerprint,
                ip_hash=ip_hash,
            )
        except IntegrityError as e:
            # Only the take_id foreign key can fail here; duplicates are absorbed by ON CONFLICT
            raise NotFoundError("Take not found") from e
        except SQLAlchemyError as e:
            logger.error("vote_create_failed", take_id=take_id, error=str(e))
            raise DatabaseError("Failed to submit vote") from e

        if vote is None:
            # Lost the race against a concurrent vote from the same device
            raise DuplicateVoteError()

        try:
            counts = await self.takes.increment_vote_count(take_id, vote_type)
        except SQLAlchemyError as e:
            logger.error("vote_count_update_failed", take_id=take_id, error=str(e))
            raise DatabaseError("Failed to submit vote") from e

        logger.info(
            "vote_created",
            take_id=take_id,
            vote_type=VoteType(vote_type).value,
            fingerprint=short_id(device_fingerprint),
        )
        return VoteOutcome(vote=vote, counts=counts)

    async def check_user_votes(self, take_ids: list[str], device_fingerprint: str) -> dict[str, str]:
        """take_id -> vote_type for the takes this device voted on."""
        if not take_ids:
            return {}
        return await self.votes.get_user_votes(take_ids, device_fingerprint)

    async def check_user_vote(self, take_id: str, device_fingerprint: str) -> dict:
        vote = await self.votes.get_user_vote(take_id, device_fingerprint)
        return {
            "voted": vote is not None,
            "vote_type": vote.vote_type if vote else None,
        }

    async def get_vote_counts(self, take_ids: list[str]) -> dict[str, dict[str, int]]:
        return await self.takes.get_vote_counts(take_ids)

    # =========================================================================
    # Reports
    # =========================================================================

    async def create_report(
        self,
        take_id: str,
        reason: ReportReason | str,
        additional_info: Optional[str],
        device_fingerprint: str,
        ip_hash: str,
    ) -> ReportOutcome:
        """
        File a report and escalate the take once enough reports are pending.

        Hiding is one-way here; only a moderator can unhide.
        """
        await self._enforce_rate_limit(RateLimitAction.REPORT, device_fingerprint, ip_hash)

        try:
            report = await self.reports.create(
                take_id=take_id,
                reason=reason,
                additional_info=additional_info,
                device_fingerprint=device_fingerprint,
                ip_hash=ip_hash,
            )
        except IntegrityError as e:
            raise NotFoundError("Take not found") from e
        except SQLAlchemyError as e:
            logger.error("report_create_failed", take_id=take_id, error=str(e))
            raise DatabaseError("Failed to submit report") from e

        pending = await self.reports.count_pending(take_id)
        take_hidden = False
        if pending >= self.auto_hide_threshold:
            take_hidden = await self.takes.auto_hide(take_id, AUTO_HIDE_REASON)
            if take_hidden:
                logger.warning("take_auto_hidden", take_id=take_id, pending_reports=pending)

        logger.info(
            "report_created",
            take_id=take_id,
            reason=ReportReason(reason).value,
            fingerprint=short_id(device_fingerprint),
        )
        return ReportOutcome(report=report, take_hidden=take_hidden)

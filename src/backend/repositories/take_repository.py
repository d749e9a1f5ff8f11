"""
Take repository for database operations.

Vote tallies are only ever changed with single-statement atomic UPDATEs.
"""

from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import Float, Numeric, and_, cast, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.take import Take
from models.vote import VoteType


class TakeSort:
    """Feed orderings accepted by list_visible."""

    CONTROVERSIAL = "controversial"
    FRESH = "fresh"
    TRENDING = "trending"
    TOP_AGREED = "top_agreed"
    TOP_DISAGREED = "top_disagreed"

    ALL = (CONTROVERSIAL, FRESH, TRENDING, TOP_AGREED, TOP_DISAGREED)


_ORDERINGS = {
    TakeSort.CONTROVERSIAL: (Take.controversy_score.desc().nulls_last(), Take.created_at.desc()),
    TakeSort.FRESH: (Take.created_at.desc(),),
    # Database-side approximation; the admission service re-ranks by decayed score
    TakeSort.TRENDING: (Take.total_votes.desc(), Take.created_at.desc()),
    TakeSort.TOP_AGREED: (Take.agree_count.desc(), Take.created_at.desc()),
    TakeSort.TOP_DISAGREED: (Take.disagree_count.desc(), Take.created_at.desc()),
}


class TakeRepository:
    """Repository for take database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def create(
        self,
        content: str,
        category: str,
        device_fingerprint: str,
        ip_hash: str,
    ) -> Take:
        """Insert a take with zeroed counters."""
        take = Take(
            id=str(uuid4()),
            content=content,
            category=category,
            agree_count=0,
            disagree_count=0,
            total_votes=0,
            controversy_score=0.0,
            is_hidden=False,
            device_fingerprint=device_fingerprint,
            ip_hash=ip_hash,
        )

        self.db.add(take)
        await self.db.flush()
        await self.db.refresh(take)

        return take

    async def get_by_id(self, take_id: str) -> Optional[Take]:
        """Get a take by ID, hidden or not."""
        result = await self.db.execute(select(Take).where(Take.id == take_id))
        return result.scalar_one_or_none()

    async def list_visible(
        self,
        sort: str = TakeSort.CONTROVERSIAL,
        category: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> list[Take]:
        """Page through non-hidden takes in the requested order."""
        query = select(Take).where(Take.is_hidden.is_(False))
        if category:
            query = query.where(Take.category == category)

        query = query.order_by(*_ORDERINGS.get(sort, _ORDERINGS[TakeSort.CONTROVERSIAL]))
        query = query.offset(offset).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_trending_candidates(
        self,
        category: Optional[str] = None,
        limit: int = 500,
    ) -> list[Take]:
        """Most-voted visible takes, to be re-ranked by decayed trending score."""
        return await self.list_visible(
            sort=TakeSort.TRENDING,
            category=category,
            offset=0,
            limit=limit,
        )

    async def increment_vote_count(self, take_id: str, vote_type: VoteType | str) -> Optional[dict[str, Any]]:
        """
        Atomically add one vote to a take's tallies.

        Counts, total and controversy score are recomputed from the pre-update
        column values inside the same statement, so concurrent voters never
        lose increments. Returns the new tallies, or None if the take is gone.
        """
        is_agree = VoteType(vote_type) == VoteType.AGREE
        agree_delta = 1 if is_agree else 0
        disagree_delta = 0 if is_agree else 1

        new_agree = Take.agree_count + agree_delta
        new_disagree = Take.disagree_count + disagree_delta
        new_total = Take.total_votes + 1

        # new_total >= 1 here, so the division is always defined
        new_score = cast(
            func.round(cast(1 - func.abs(new_agree - new_disagree) / cast(new_total, Float), Numeric), 4),
            Float,
        )

        result = await self.db.execute(
            update(Take)
            .where(Take.id == take_id)
            .values(
                agree_count=new_agree,
                disagree_count=new_disagree,
                total_votes=new_total,
                controversy_score=new_score,
            )
            .returning(
                Take.agree_count,
                Take.disagree_count,
                Take.total_votes,
                Take.controversy_score,
            )
        )
        row = result.first()
        if row is None:
            return None

        return {
            "agree_count": row.agree_count,
            "disagree_count": row.disagree_count,
            "total_votes": row.total_votes,
            "controversy_score": row.controversy_score,
        }

    async def auto_hide(self, take_id: str, reason: str) -> bool:
        """
        Hide a take if it is still visible.

        One-way and idempotent: returns True only for the call that actually
        flipped the flag.
        """
        result = await self.db.execute(
            update(Take)
            .where(and_(Take.id == take_id, Take.is_hidden.is_(False)))
            .values(is_hidden=True, hidden_reason=reason)
        )
        return self._get_rowcount(result) > 0

    async def set_hidden(self, take_id: str, hidden: bool, reason: Optional[str] = None) -> bool:
        """Moderator override of a take's visibility."""
        result = await self.db.execute(
            update(Take)
            .where(Take.id == take_id)
            .values(is_hidden=hidden, hidden_reason=reason if hidden else None)
        )
        return self._get_rowcount(result) > 0

    async def get_vote_counts(self, take_ids: list[str]) -> dict[str, dict[str, int]]:
        """Current tallies for a batch of takes. Unknown IDs are omitted."""
        if not take_ids:
            return {}

        result = await self.db.execute(
            select(Take.id, Take.agree_count, Take.disagree_count, Take.total_votes).where(
                Take.id.in_(take_ids)
            )
        )
        return {
            str(row.id): {
                "agree": row.agree_count,
                "disagree": row.disagree_count,
                "total": row.total_votes,
            }
            for row in result.all()
        }


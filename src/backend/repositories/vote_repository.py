"""
Vote repository for database operations.

Votes are immutable. Uniqueness per (take, device) is enforced by the
uq_votes_take_fingerprint constraint; create() relies on it rather than on a
prior lookup.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import and_, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from models.vote import Vote, VoteType


class VoteRepository:
    """Repository for vote database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists_for_device(self, take_id: str, device_fingerprint: str) -> bool:
        """Check if this device already voted on the take (for duplicate detection)."""
        result = await self.db.execute(
            select(func.count(Vote.id)).where(
                and_(
                    Vote.take_id == take_id,
                    Vote.device_fingerprint == device_fingerprint,
                )
            )
        )
        count = result.scalar() or 0
        return count > 0

    async def create(
        self,
        take_id: str,
        vote_type: VoteType | str,
        device_fingerprint: str,
        ip_hash: str,
    ) -> Optional[Vote]:
        """
        Insert a vote unless the device already has one on this take.

        Returns None when the unique constraint swallowed the insert, which
        means a concurrent request from the same device won the race.
        """
        vote_id = str(uuid4())
        result = await self.db.execute(
            insert(Vote)
            .values(
                id=vote_id,
                take_id=take_id,
                vote_type=VoteType(vote_type).value,
                device_fingerprint=device_fingerprint,
                ip_hash=ip_hash,
            )
            .on_conflict_do_nothing(constraint="uq_votes_take_fingerprint")
            .returning(Vote.id)
        )
        if result.scalar_one_or_none() is None:
            return None

        return await self.db.get(Vote, vote_id)

    async def get_user_vote(self, take_id: str, device_fingerprint: str) -> Optional[Vote]:
        """Get the device's vote on a single take."""
        result = await self.db.execute(
            select(Vote).where(
                and_(
                    Vote.take_id == take_id,
                    Vote.device_fingerprint == device_fingerprint,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_user_votes(self, take_ids: list[str], device_fingerprint: str) -> dict[str, str]:
        """
        Map of take_id -> vote_type for the takes this device voted on.

        Takes without a vote are omitted.
        """
        if not take_ids:
            return {}

        result = await self.db.execute(
            select(Vote.take_id, Vote.vote_type).where(
                and_(
                    Vote.take_id.in_(take_ids),
                    Vote.device_fingerprint == device_fingerprint,
                )
            )
        )
        return {str(row.take_id): row.vote_type for row in result.all()}

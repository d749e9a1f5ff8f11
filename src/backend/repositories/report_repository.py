"""
Report repository for database operations.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.report import Report, ReportReason, ReportStatus


class ReportRepository:
    """Repository for report database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    async def create(
        self,
        take_id: str,
        reason: ReportReason | str,
        additional_info: Optional[str],
        device_fingerprint: str,
        ip_hash: str,
    ) -> Report:
        """Insert a pending report."""
        report = Report(
            id=str(uuid4()),
            take_id=take_id,
            reason=ReportReason(reason).value,
            additional_info=additional_info,
            status=ReportStatus.PENDING.value,
            device_fingerprint=device_fingerprint,
            ip_hash=ip_hash,
        )

        self.db.add(report)
        await self.db.flush()
        await self.db.refresh(report)

        return report

    async def get_by_id(self, report_id: str) -> Optional[Report]:
        result = await self.db.execute(select(Report).where(Report.id == report_id))
        return result.scalar_one_or_none()

    async def count_pending(self, take_id: str) -> int:
        """Number of pending reports against a take."""
        result = await self.db.execute(
            select(func.count(Report.id)).where(
                and_(
                    Report.take_id == take_id,
                    Report.status == ReportStatus.PENDING.value,
                )
            )
        )
        return result.scalar() or 0

    async def list_reports(
        self,
        status: Optional[ReportStatus | str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Report]:
        """Moderation queue, newest first."""
        query = select(Report)
        if status:
            query = query.where(Report.status == ReportStatus(status).value)

        result = await self.db.execute(
            query.order_by(Report.reported_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_take(self, take_id: str) -> list[Report]:
        """All reports filed against a take, newest first."""
        result = await self.db.execute(
            select(Report)
            .where(Report.take_id == take_id)
            .order_by(Report.reported_at.desc())
        )
        return list(result.scalars().all())

    async def update_status(
        self,
        report_id: str,
        status: ReportStatus | str,
        reviewed_by: Optional[str] = None,
    ) -> Optional[Report]:
        """Record a moderator decision. Returns None if the report does not exist."""
        result = await self.db.execute(
            update(Report)
            .where(Report.id == report_id)
            .values(
                status=ReportStatus(status).value,
                reviewed_by=reviewed_by,
                reviewed_at=datetime.now(timezone.utc),
            )
        )
        if self._get_rowcount(result) == 0:
            return None

        return await self.get_by_id(report_id)

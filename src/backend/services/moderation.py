"""
Moderator operations on reports and take visibility.

Callers are authenticated by api.deps.require_admin before reaching here.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError
from models.report import Report, ReportStatus
from repositories.report_repository import ReportRepository
from repositories.take_repository import TakeRepository

logger = structlog.get_logger(__name__)


class ModerationService:
    """Review queue and manual hide/unhide."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.reports = ReportRepository(db)
        self.takes = TakeRepository(db)

    async def list_reports(
        self,
        status: Optional[ReportStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Report]:
        return await self.reports.list_reports(status=status, offset=offset, limit=limit)

    async def list_reports_for_take(self, take_id: str) -> list[Report]:
        if await self.takes.get_by_id(take_id) is None:
            raise NotFoundError("Take not found")
        return await self.reports.list_for_take(take_id)

    async def update_report_status(
        self,
        report_id: str,
        status: ReportStatus,
        reviewed_by: Optional[str] = None,
    ) -> Report:
        report = await self.reports.update_status(report_id, status, reviewed_by)
        if report is None:
            raise NotFoundError("Report not found")

        logger.info("report_reviewed", report_id=report_id, status=ReportStatus(status).value)
        return report

    async def set_take_visibility(
        self,
        take_id: str,
        hidden: bool,
        reason: Optional[str] = None,
    ) -> None:
        """Hide or unhide a take. Unlike auto-hide, this also reverses earlier hides."""
        if not await self.takes.set_hidden(take_id, hidden, reason):
            raise NotFoundError("Take not found")

        logger.info("take_visibility_changed", take_id=take_id, hidden=hidden)

"""
Tests for report repository.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

TAKE_ID = "77777777-7777-4777-8777-777777777777"
REPORT_ID = "88888888-8888-4888-8888-888888888888"


@pytest.fixture
def mock_session():
    """Create a mock database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.mark.unit
class TestReportRepository:
    """Test ReportRepository operations."""

    async def test_create_is_pending(self, mock_session) -> None:
        from models.report import ReportStatus
        from repositories.report_repository import ReportRepository

        repo = ReportRepository(mock_session)
        await repo.create(TAKE_ID, "spam", "links everywhere", "fp", "iphash")

        report = mock_session.add.call_args[0][0]
        assert report.status == ReportStatus.PENDING.value
        assert report.reason == "spam"
        assert report.device_fingerprint == "fp"

    async def test_create_rejects_unknown_reason(self, mock_session) -> None:
        from repositories.report_repository import ReportRepository

        repo = ReportRepository(mock_session)
        with pytest.raises(ValueError):
            await repo.create(TAKE_ID, "boring", None, "fp", "iphash")

    async def test_count_pending(self, mock_session) -> None:
        from repositories.report_repository import ReportRepository

        mock_result = MagicMock()
        mock_result.scalar = MagicMock(return_value=10)
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = ReportRepository(mock_session)
        assert await repo.count_pending(TAKE_ID) == 10

    async def test_update_status_missing(self, mock_session) -> None:
        from repositories.report_repository import ReportRepository

        mock_result = MagicMock()
        mock_result.rowcount = 0
        mock_session.execute = AsyncMock(return_value=mock_result)

        repo = ReportRepository(mock_session)
        assert await repo.update_status(REPORT_ID, "reviewed") is None

    async def test_update_status_returns_report(self, mock_session) -> None:
        from repositories.report_repository import ReportRepository

        update_result = MagicMock()
        update_result.rowcount = 1
        report = MagicMock(id=REPORT_ID, status="actioned")
        select_result = MagicMock()
        select_result.scalar_one_or_none = MagicMock(return_value=report)
        mock_session.execute = AsyncMock(side_effect=[update_result, select_result])

        repo = ReportRepository(mock_session)
        assert await repo.update_status(REPORT_ID, "actioned", "mod-1") is report

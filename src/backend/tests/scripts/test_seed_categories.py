"""
Tests for the category seed script.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


def mock_session(existing_slugs: list[str]) -> AsyncMock:
    session = AsyncMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = existing_slugs
    session.execute = AsyncMock(return_value=result)
    session.add = MagicMock()
    return session


@pytest.mark.unit
class TestSeedCategories:
    """Test seed_categories."""

    async def test_seeds_empty_database(self) -> None:
        from scripts.seed_categories import SEED_CATEGORIES, seed_categories

        session = mock_session([])

        assert await seed_categories(session) == len(SEED_CATEGORIES)
        added = [call.args[0] for call in session.add.call_args_list]
        assert [c.display_order for c in added] == list(range(1, len(SEED_CATEGORIES) + 1))
        session.commit.assert_awaited_once()

    async def test_skips_existing_slugs(self) -> None:
        from scripts.seed_categories import SEED_CATEGORIES, seed_categories

        session = mock_session(["food", "tech"])

        assert await seed_categories(session) == len(SEED_CATEGORIES) - 2
        slugs = {call.args[0].slug for call in session.add.call_args_list}
        assert "food" not in slugs
        assert "sports" in slugs

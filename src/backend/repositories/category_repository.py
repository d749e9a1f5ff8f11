"""
Category repository for database operations.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category


class CategoryRepository:
    """Repository for category database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(self) -> list[Category]:
        """Active categories in display order."""
        result = await self.db.execute(
            select(Category)
            .where(Category.is_active.is_(True))
            .order_by(Category.display_order.asc().nulls_last(), Category.name.asc())
        )
        return list(result.scalars().all())

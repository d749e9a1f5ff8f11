"""
Seed the category list.

Categories are read-only through the API, so this is how they get into a
fresh database. Safe to re-run: existing slugs are left untouched.

Run with: python -m scripts.seed_categories
"""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import scripts._common  # noqa: F401 - Sets up sys.path for imports
from db.session import async_session_maker, init_db
from models.category import Category

SEED_CATEGORIES = [
    {"name": "Food", "slug": "food", "emoji": "🍕"},
    {"name": "Tech", "slug": "tech", "emoji": "💻"},
    {"name": "Sports", "slug": "sports", "emoji": "🏀"},
    {"name": "Movies & TV", "slug": "movies-tv", "emoji": "🎬"},
    {"name": "Music", "slug": "music", "emoji": "🎵"},
    {"name": "Work", "slug": "work", "emoji": "💼"},
    {"name": "Life", "slug": "life", "emoji": "🌱"},
    {"name": "Other", "slug": "other", "emoji": "💬"},
]


async def seed_categories(db: AsyncSession) -> int:
    """Insert any seed categories that are missing. Returns the number added."""
    result = await db.execute(select(Category.slug))
    existing = set(result.scalars().all())

    added = 0
    for order, data in enumerate(SEED_CATEGORIES, start=1):
        if data["slug"] in existing:
            continue
        db.add(Category(display_order=order, is_active=True, **data))
        added += 1

    await db.commit()
    return added


async def main() -> None:
    print("=" * 60)
    print("🗂️  CATEGORY SEEDING")
    print("=" * 60)

    await init_db()

    async with async_session_maker() as db:
        try:
            added = await seed_categories(db)
        except Exception as e:
            print(f"\n❌ Error seeding categories: {e}")
            await db.rollback()
            raise

    print(f"  ✓ Added {added} categories ({len(SEED_CATEGORIES) - added} already present)")


if __name__ == "__main__":
    asyncio.run(main())

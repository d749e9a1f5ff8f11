"""
Category endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_db
from repositories.category_repository import CategoryRepository
from schemas.category import CategoryResponse

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[CategoryResponse]:
    """Active categories in display order."""
    categories = await CategoryRepository(db).list_active()
    return [CategoryResponse.model_validate(c) for c in categories]

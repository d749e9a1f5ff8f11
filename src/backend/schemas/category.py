"""
Category-related Pydantic schemas.
"""

from typing import Optional

from pydantic import BaseModel


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    emoji: Optional[str] = None
    display_order: Optional[int] = None

    model_config = {"from_attributes": True}

"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter

from api.v1.admin import router as admin_router
from api.v1.categories import router as categories_router
from api.v1.identity import router as identity_router
from api.v1.reports import router as reports_router
from api.v1.takes import router as takes_router
from api.v1.votes import router as votes_router

router = APIRouter()

router.include_router(takes_router, prefix="/takes", tags=["Takes"])
router.include_router(votes_router, prefix="/votes", tags=["Votes"])
router.include_router(reports_router, prefix="/reports", tags=["Reports"])
router.include_router(categories_router, prefix="/categories", tags=["Categories"])
router.include_router(identity_router, prefix="/identity", tags=["Identity"])
router.include_router(admin_router, prefix="/admin", tags=["Moderation"])

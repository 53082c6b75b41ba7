"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.activity import router as activity_router
from api.v1.routes.budgets import router as budgets_router
from api.v1.routes.groups import router as groups_router
from api.v1.routes.invitations import group_invitations_router, invitations_router
from api.v1.routes.members import router as members_router
from api.v1.routes.transactions import router as transactions_router

router = APIRouter()
router.include_router(groups_router)
router.include_router(members_router)
router.include_router(group_invitations_router)
router.include_router(invitations_router)
router.include_router(activity_router)
router.include_router(transactions_router)
router.include_router(budgets_router)

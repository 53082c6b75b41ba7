"""Group activity feed API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_activity_service
from api.v1.schemas.activity import ActivityListResponse, ActivityLogResponse
from api.v1.schemas.common import UserSummary
from core.rate_limit import limiter
from domain.services.activity_service import ActivityService

router = APIRouter(
    prefix="/groups/{group_id}/activity",
    tags=["activity"],
)


@router.get(
    "",
    response_model=ActivityListResponse,
    summary="Get group activity feed",
    responses={
        200: {"description": "Activity feed, newest first"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_group_activity(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    limit: int | None = Query(None, ge=1, description="Clamped to the configured maximum"),
    service: ActivityService = Depends(get_activity_service),
) -> ActivityListResponse:
    """Get the activity feed for a group. Requires membership."""
    entries = await service.list_for_group(group_id, user.id, limit=limit)
    data = [
        ActivityLogResponse(
            id=e.id,
            group_id=e.group_id,
            user_id=e.user_id,
            action=e.action,
            entity_type=e.entity_type,
            entity_id=e.entity_id,
            details=e.details,
            created_at=e.created_at,
            user=UserSummary.model_validate(e.user) if e.user else None,
        )
        for e in entries
    ]
    return ActivityListResponse(data=data, meta={"total": len(data)})

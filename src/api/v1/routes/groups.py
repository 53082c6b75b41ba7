"""Budget group API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_group_service
from api.v1.schemas.group import (
    GroupCreate,
    GroupDetailResponse,
    GroupListResponse,
    GroupResponse,
    GroupUpdate,
)
from core.rate_limit import limiter
from domain.entities.group import BudgetGroup, GroupWithRole
from domain.services.group_service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


def _build_group_response(group: BudgetGroup, membership: GroupWithRole | None = None) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        avatar_url=group.avatar_url,
        is_active=group.is_active,
        created_by=group.created_by,
        created_at=group.created_at,
        updated_at=group.updated_at,
        role=membership.role.value if membership else None,
        joined_at=membership.joined_at if membership else None,
    )


@router.get(
    "",
    response_model=GroupListResponse,
    summary="List my groups",
    responses={200: {"description": "Groups the caller belongs to, most recently joined first"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_groups(
    request: Request,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupListResponse:
    """Get every group the caller is a member of, with the caller's role."""
    memberships = await service.list_for_user(user.id)
    data = [_build_group_response(m.group, m) for m in memberships]
    return GroupListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=GroupDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
    responses={201: {"description": "Group created; the caller is its owner"}},
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_group(
    request: Request,
    body: GroupCreate,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Create a new budget group. The caller becomes its owner."""
    group = await service.create(
        name=body.name,
        created_by=user.id,
        description=body.description,
        avatar_url=body.avatar_url,
    )
    data = _build_group_response(group)
    data.role = "owner"
    return GroupDetailResponse(data=data)


@router.get(
    "/{group_id}",
    response_model=GroupDetailResponse,
    summary="Get a group",
    responses={
        200: {"description": "Group with the caller's role"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_group(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Get a group. Requires membership."""
    membership = await service.get(group_id, user.id)
    return GroupDetailResponse(data=_build_group_response(membership.group, membership))


@router.patch(
    "/{group_id}",
    response_model=GroupDetailResponse,
    summary="Update a group",
    responses={
        200: {"description": "Group updated"},
        403: {"description": "Insufficient permissions (owner or admin only)"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_group(
    request: Request,
    group_id: UUID,
    body: GroupUpdate,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Update group settings or (de)activate it. Requires owner or admin."""
    group = await service.update(
        group_id,
        user.id,
        name=body.name,
        description=body.description,
        avatar_url=body.avatar_url,
        is_active=body.is_active,
    )
    return GroupDetailResponse(data=_build_group_response(group))


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
    responses={
        204: {"description": "Group and all its records deleted"},
        403: {"description": "Insufficient permissions (owner or admin only)"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def delete_group(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> None:
    """Delete a group. Requires owner or admin."""
    await service.delete(group_id, user.id)
    return None

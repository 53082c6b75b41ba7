"""Group member API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_membership_service
from api.v1.schemas.common import UserSummary
from api.v1.schemas.group import (
    GroupMemberListResponse,
    GroupMemberResponse,
    UpdateGroupMemberRequest,
)
from core.rate_limit import limiter
from domain.entities.group import FamilyRole, GroupMember, GroupRole
from domain.services.membership_service import MembershipService, MemberView

router = APIRouter(prefix="/groups/{group_id}/members", tags=["members"])


def _build_member_response(member: GroupMember, view: MemberView | None = None) -> GroupMemberResponse:
    return GroupMemberResponse(
        user_id=member.user_id,
        role=member.role.value,
        family_role=member.family_role.value if member.family_role else None,
        joined_at=member.joined_at,
        user=UserSummary.model_validate(view.user) if view else None,
        email=view.email if view else None,
    )


@router.get(
    "",
    response_model=GroupMemberListResponse,
    summary="List group members",
    responses={
        200: {"description": "Members with display info"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_group_members(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> GroupMemberListResponse:
    """Get all members of a group. Requires membership."""
    views = await service.list_members(group_id, user.id)
    data = [_build_member_response(v.member, v) for v in views]
    return GroupMemberListResponse(data=data, meta={"total": len(data)})


@router.patch(
    "/{user_id}",
    response_model=GroupMemberResponse,
    summary="Update a member's role",
    responses={
        200: {"description": "Member updated"},
        403: {"description": "The caller's role may not change this member"},
        404: {"description": "Group or member not found"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def update_group_member(
    request: Request,
    group_id: UUID,
    user_id: UUID,
    body: UpdateGroupMemberRequest,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> GroupMemberResponse:
    """Change a member's group role and/or family role.

    Owners may change anyone but themselves; admins only members and
    viewers. The owner may also set their own family role.
    """
    member = await service.update_member(
        group_id,
        user.id,
        user_id,
        role=GroupRole(body.role) if body.role else None,
        family_role=FamilyRole(body.family_role) if body.family_role else None,
        clear_family_role="family_role" in body.model_fields_set and body.family_role is None,
    )
    return _build_member_response(member)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a group member",
    responses={
        204: {"description": "Member removed"},
        403: {"description": "The caller's role may not remove this member"},
        404: {"description": "Group or member not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def remove_group_member(
    request: Request,
    group_id: UUID,
    user_id: UUID,
    user: CurrentUser,
    service: MembershipService = Depends(get_membership_service),
) -> None:
    """Remove a member from the group. Nobody can remove themselves."""
    await service.remove_member(group_id, user.id, user_id)
    return None

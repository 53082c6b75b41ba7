"""Invitation API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser, OptionalUser
from api.v1.dependencies import get_invitation_service
from api.v1.schemas.common import UserSummary
from api.v1.schemas.invitation import (
    CreateInvitationRequest,
    InvitationCreatedResponse,
    InvitationDetailResponse,
    InvitationListResponse,
    InvitationResponse,
    InvitationStatusResponse,
)
from core.rate_limit import limiter
from domain.entities.group import GroupRole
from domain.entities.invitation import Invitation
from domain.services.invitation_service import InvitationService

# Group-scoped invitation routes (issue, list, cancel)
group_invitations_router = APIRouter(
    prefix="/groups/{group_id}/invitations",
    tags=["invitations"],
)

# Token-scoped invitation routes (lookup, accept, reject, pending)
invitations_router = APIRouter(
    prefix="/invitations",
    tags=["invitations"],
)


def _build_invitation_response(invitation: Invitation) -> InvitationResponse:
    family_role = invitation.metadata.family_role
    return InvitationResponse(
        id=invitation.id,
        group_id=invitation.group_id,
        email=invitation.email,
        role=invitation.role.value,
        status=invitation.status.value,
        invited_by=invitation.invited_by,
        family_role=family_role.value if family_role else None,
        created_at=invitation.created_at,
        expires_at=invitation.expires_at,
    )


@group_invitations_router.post(
    "",
    response_model=InvitationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite someone to a group",
    responses={
        201: {"description": "Invitation created"},
        403: {"description": "Insufficient permissions (owner or admin only)"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def create_invitation(
    request: Request,
    group_id: UUID,
    body: CreateInvitationRequest,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationCreatedResponse:
    """Invite an email address to join the group. Requires owner or admin."""
    invitation = await service.issue(
        group_id=group_id,
        invited_by=user.id,
        email=body.email,
        role=GroupRole(body.role),
        family_role=body.family_role,
    )
    return InvitationCreatedResponse(
        data=_build_invitation_response(invitation),
        token=invitation.token,
    )


@group_invitations_router.get(
    "",
    response_model=InvitationListResponse,
    summary="List group invitations",
    responses={
        200: {"description": "All invitations of the group, newest first"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_group_invitations(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """List every invitation of a group. Requires membership."""
    invitations = await service.list_for_group(group_id, user.id)
    data = [_build_invitation_response(i) for i in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@group_invitations_router.delete(
    "/{invitation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel an invitation",
    responses={
        204: {"description": "Invitation deleted"},
        403: {"description": "Insufficient permissions (owner or admin only)"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def cancel_invitation(
    request: Request,
    group_id: UUID,
    invitation_id: UUID,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> None:
    """Withdraw an invitation. Requires owner or admin."""
    await service.cancel(group_id, invitation_id, user.id)
    return None


@invitations_router.get(
    "/pending",
    response_model=InvitationListResponse,
    summary="List my pending invitations",
    responses={200: {"description": "Pending invitations addressed to the caller's email"}},
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_pending_invitations(
    request: Request,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationListResponse:
    """Get pending invitations for the current user's email address."""
    invitations = await service.list_for_email(user.email)
    data = [_build_invitation_response(i) for i in invitations]
    return InvitationListResponse(data=data, meta={"total": len(data)})


@invitations_router.get(
    "/{token}",
    response_model=InvitationDetailResponse,
    summary="Look up an invitation by token",
    responses={
        200: {"description": "Invitation with group display info"},
        404: {"description": "Invitation not found"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def get_invitation(
    request: Request,
    token: str,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationDetailResponse:
    """Show an invitation to its recipient. No authentication required."""
    view = await service.lookup_by_token(token)
    return InvitationDetailResponse(
        data=_build_invitation_response(view.invitation),
        group_name=view.group_name,
        group_description=view.group_description,
        group_avatar_url=view.group_avatar_url,
        inviter=UserSummary.model_validate(view.inviter) if view.inviter else None,
    )


@invitations_router.post(
    "/{token}/accept",
    response_model=InvitationStatusResponse,
    summary="Accept an invitation",
    responses={
        200: {"description": "Invitation accepted; the caller joined the group"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation no longer pending or already a member"},
        410: {"description": "Invitation expired"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def accept_invitation(
    request: Request,
    token: str,
    user: CurrentUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationStatusResponse:
    """Accept an invitation and join the group."""
    invitation = await service.accept(token, user.id)
    return InvitationStatusResponse(
        data=_build_invitation_response(invitation),
        message="Invitation accepted successfully",
    )


@invitations_router.post(
    "/{token}/reject",
    response_model=InvitationStatusResponse,
    summary="Reject an invitation",
    responses={
        200: {"description": "Invitation rejected"},
        404: {"description": "Invitation not found"},
        409: {"description": "Invitation no longer pending"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def reject_invitation(
    request: Request,
    token: str,
    user: OptionalUser,
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationStatusResponse:
    """Decline an invitation. Works without an account."""
    invitation = await service.reject(token, user.id if user else None)
    return InvitationStatusResponse(
        data=_build_invitation_response(invitation),
        message="Invitation rejected",
    )

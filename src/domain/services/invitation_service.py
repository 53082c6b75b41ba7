"""Invitation service layer: the group invitation lifecycle."""

import secrets
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import (
    InvitationExpiredError,
    InvitationNoLongerValidError,
    InvitationNotFoundError,
)
from domain.authorization import GroupOperation, require_allowed
from domain.entities.activity import Actions, EntityTypes, InvitationActivityDetails
from domain.entities.group import FamilyRole, GroupRole, parse_family_role
from domain.entities.invitation import (
    Invitation,
    InvitationMetadata,
    InvitationStatus,
    InvitationView,
)
from domain.entities.profile import UserStub
from domain.repositories.data_store import IDataStore
from domain.repositories.group_repository import GroupRepository
from domain.repositories.invitation_repository import InvitationRepository
from domain.repositories.membership_repository import MembershipRepository
from domain.repositories.profile_repository import ProfileRepository
from domain.services.access import require_membership
from domain.services.activity_service import ActivityService
from domain.services.membership_service import MembershipService

logger = structlog.get_logger()


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class InvitationService:
    """Service layer for group invitations.

    States: ``pending`` -> ``accepted`` | ``rejected`` | ``expired``.
    Expiry is applied lazily when someone tries to accept.
    """

    def __init__(
        self,
        store: IDataStore,
        membership_service: MembershipService,
        activity_service: ActivityService | None = None,
    ) -> None:
        self._store = store
        self._invitations = InvitationRepository(store)
        self._members = MembershipRepository(store)
        self._groups = GroupRepository(store)
        self._profiles = ProfileRepository(store)
        self._memberships = membership_service
        self._activity = activity_service

    async def issue(
        self,
        group_id: UUID,
        invited_by: UUID,
        email: str,
        role: GroupRole = GroupRole.MEMBER,
        family_role: FamilyRole | str | None = None,
    ) -> Invitation:
        """Invite an email address to a group.

        The address does not need to belong to an existing account.

        Args:
            group_id: The group to invite to.
            invited_by: The inviting member (must be owner or admin).
            email: The invitee's email address.
            role: The role granted on acceptance (admin, member or viewer).
            family_role: Optional household label carried to the membership.

        Raises:
            NotAMemberError: The inviter is not a member.
            InsufficientPermissionsError: The inviter may not grant ``role``.
        """
        inviter = await require_membership(self._members, group_id, invited_by)
        require_allowed(inviter.role, GroupOperation.INVITE, target_role=role)

        now = datetime.utcnow()
        invitation = await self._invitations.create(
            Invitation(
                group_id=group_id,
                invited_by=invited_by,
                email=normalize_email(email),
                role=role,
                token=await self._generate_token(),
                created_at=now,
                expires_at=now + timedelta(days=settings.invitation_expiry_days),
                metadata=InvitationMetadata(family_role=parse_family_role(family_role)),
            )
        )

        logger.info("invitation_issued", group_id=str(group_id), invitation_id=str(invitation.id))
        await self._log(
            invitation,
            invited_by,
            Actions.INVITED_MEMBER,
        )
        return invitation

    async def lookup_by_token(self, token: str) -> InvitationView:
        """Get an invitation with its group's display fields. No auth.

        Group and inviter display fields are best effort.

        Raises:
            InvitationNotFoundError: No invitation carries ``token``.
        """
        invitation = await self._get_by_token(token)
        view = InvitationView(invitation=invitation)

        try:
            group = await self._groups.get(invitation.group_id)
            if group:
                view.group_name = group.name
                view.group_description = group.description
                view.group_avatar_url = group.avatar_url
            profiles = await self._profiles.get_many([invitation.invited_by])
            inviter = profiles.get(invitation.invited_by)
            view.inviter = UserStub.from_profile(inviter) if inviter else None
        except Exception as exc:
            logger.warning(
                "invitation_enrichment_failed",
                invitation_id=str(invitation.id),
                error=str(exc),
            )
        return view

    async def list_for_email(self, email: str | None) -> list[Invitation]:
        """Pending invitations addressed to ``email``, newest first.

        A blank email yields an empty list.
        """
        normalized = normalize_email(email)
        if not normalized:
            return []
        return await self._invitations.list_pending_for_email(normalized)

    async def list_for_group(self, group_id: UUID, actor_id: UUID) -> list[Invitation]:
        """All invitations of a group, newest first. Requires membership."""
        await require_membership(self._members, group_id, actor_id)
        return await self._invitations.list_for_group(group_id)

    async def accept(self, token: str, user_id: UUID) -> Invitation:
        """Accept an invitation and join its group.

        If the membership cannot be created the invitation stays pending so
        the accept can be retried. Accepting twice is an error, not a no-op.

        Raises:
            InvitationNotFoundError: No invitation carries ``token``.
            InvitationNoLongerValidError: The invitation is not pending.
            InvitationExpiredError: The invitation expired; it is now
                stored as ``expired``.
            AlreadyAGroupMemberError: The user already belongs to the group.
        """
        invitation = await self._get_by_token(token)

        if not invitation.is_pending:
            raise InvitationNoLongerValidError(invitation.status.value)

        if invitation.is_expired():
            await self._invitations.update_status(invitation.id, InvitationStatus.EXPIRED)
            logger.info("invitation_expired", invitation_id=str(invitation.id))
            raise InvitationExpiredError()

        await self._memberships.add(
            invitation.group_id,
            user_id,
            invitation.role,
            invitation.metadata.family_role,
        )

        accepted = await self._invitations.update_status(invitation.id, InvitationStatus.ACCEPTED)
        logger.info(
            "invitation_accepted",
            invitation_id=str(invitation.id),
            group_id=str(invitation.group_id),
        )
        await self._log(accepted, user_id, Actions.ACCEPTED_INVITATION)
        return accepted

    async def reject(self, token: str, user_id: UUID | None = None) -> Invitation:
        """Decline an invitation. Expiry is not checked.

        Invitees without an account may reject anonymously; the activity
        entry is then attributed to the inviter.

        Raises:
            InvitationNotFoundError: No invitation carries ``token``.
            InvitationNoLongerValidError: The invitation is not pending.
        """
        invitation = await self._get_by_token(token)
        if not invitation.is_pending:
            raise InvitationNoLongerValidError(invitation.status.value)

        rejected = await self._invitations.update_status(invitation.id, InvitationStatus.REJECTED)
        await self._log(rejected, user_id or invitation.invited_by, Actions.REJECTED_INVITATION)
        return rejected

    async def cancel(self, group_id: UUID, invitation_id: UUID, actor_id: UUID) -> None:
        """Withdraw an invitation. Requires owner or admin of its group.

        An invitation that belongs to a different group is reported as not
        found.
        """
        invitation = await self._invitations.get_by_id(invitation_id)
        if invitation is None or invitation.group_id != group_id:
            raise InvitationNotFoundError(str(invitation_id))

        actor = await require_membership(self._members, invitation.group_id, actor_id)
        require_allowed(actor.role, GroupOperation.INVITE, target_role=invitation.role)

        await self._invitations.delete(invitation_id)
        await self._log(invitation, actor_id, Actions.CANCELLED_INVITATION)

    # --- Internal helpers ---

    async def _get_by_token(self, token: str) -> Invitation:
        invitation = await self._invitations.get_by_token(token) if token else None
        if invitation is None:
            raise InvitationNotFoundError()
        return invitation

    async def _generate_token(self) -> str:
        """Mint a token with the store's procedure, or locally if unavailable.

        Tokens only need to be unique and unguessable for a week; the local
        fallback is 256 bits from ``secrets``.
        """
        try:
            token = await self._store.call(settings.invitation_token_procedure)
        except Exception as exc:
            logger.warning("invitation_token_fallback", error=str(exc))
            return secrets.token_urlsafe(32)

        if not isinstance(token, str) or not token:
            logger.warning("invitation_token_fallback", error="empty token from procedure")
            return secrets.token_urlsafe(32)
        return token

    async def _log(self, invitation: Invitation, actor_id: UUID, action: str) -> None:
        if self._activity:
            await self._activity.record(
                invitation.group_id,
                actor_id,
                action,
                EntityTypes.INVITATION,
                invitation.id,
                InvitationActivityDetails(email=invitation.email, role=invitation.role.value),
            )

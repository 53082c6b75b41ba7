"""Membership service: group membership mechanism and role-gated policy."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import (
    AlreadyAGroupMemberError,
    DuplicateRecordError,
    GroupMemberNotFoundError,
    InsufficientPermissionsError,
)
from domain.authorization import GroupOperation, can_assign_role, require_allowed
from domain.entities.activity import Actions, EntityTypes, MemberActivityDetails
from domain.entities.group import FamilyRole, GroupMember, GroupRole
from domain.entities.profile import UserStub
from domain.repositories.data_store import IDataStore
from domain.repositories.membership_repository import MembershipRepository
from domain.repositories.profile_repository import ProfileRepository
from domain.services.access import require_membership
from domain.services.activity_service import ActivityService

logger = structlog.get_logger()


@dataclass
class MemberView:
    """A membership with the member's display info (or an ID-only stub)."""

    member: GroupMember
    user: UserStub
    email: str | None = None


class MembershipService:
    """Service layer for group memberships.

    ``add``, ``update_role`` and ``remove`` are mechanism only: they perform
    no authorization. Legitimate callers of ``add`` are group creation
    (owner) and invitation acceptance. ``update_member`` and
    ``remove_member`` are the policy entry points and consult the
    authorization rules first.
    """

    def __init__(
        self,
        store: IDataStore,
        activity_service: ActivityService | None = None,
    ) -> None:
        self._members = MembershipRepository(store)
        self._profiles = ProfileRepository(store)
        self._activity = activity_service

    # --- Mechanism ---

    async def add(
        self,
        group_id: UUID,
        user_id: UUID,
        role: GroupRole,
        family_role: FamilyRole | None = None,
    ) -> GroupMember:
        """Create a membership. A duplicate (group_id, user_id) is an error.

        Raises:
            AlreadyAGroupMemberError: The user already belongs to the group.
        """
        member = GroupMember(
            group_id=group_id,
            user_id=user_id,
            role=role,
            family_role=family_role,
            joined_at=datetime.utcnow(),
        )
        try:
            return await self._members.add(member)
        except AlreadyAGroupMemberError:
            raise
        except DuplicateRecordError as exc:
            raise AlreadyAGroupMemberError(str(user_id)) from exc

    async def update_role(
        self,
        group_id: UUID,
        user_id: UUID,
        role: GroupRole | None = None,
        family_role: FamilyRole | None = None,
        *,
        clear_family_role: bool = False,
    ) -> GroupMember:
        """Write a group-role and/or family-role change as one update."""
        patch: dict[str, str | None] = {}
        if role is not None:
            patch["role"] = role.value
        if family_role is not None or clear_family_role:
            patch["family_role"] = family_role.value if family_role else None
        return await self._members.update(group_id, user_id, patch)

    async def remove(self, group_id: UUID, user_id: UUID) -> None:
        await self._members.remove(group_id, user_id)

    # --- Reads ---

    async def get_role(self, group_id: UUID, user_id: UUID) -> GroupRole:
        """Get a user's role in a group.

        Raises:
            NotAMemberError: The user has no membership (no access).
        """
        member = await require_membership(self._members, group_id, user_id)
        return member.role

    async def list_members(self, group_id: UUID, actor_id: UUID) -> list[MemberView]:
        """List every member of a group. Requires membership.

        Display info is best effort: if profiles cannot be loaded each
        member still comes back with an ID-only user stub.
        """
        await require_membership(self._members, group_id, actor_id)
        members = await self._members.list_for_group(group_id)

        try:
            profiles = await self._profiles.get_many([m.user_id for m in members])
        except Exception as exc:
            logger.warning("member_enrichment_failed", group_id=str(group_id), error=str(exc))
            profiles = {}

        views = []
        for member in members:
            profile = profiles.get(member.user_id)
            if profile:
                views.append(
                    MemberView(member=member, user=UserStub.from_profile(profile), email=profile.email)
                )
            else:
                views.append(MemberView(member=member, user=UserStub(id=member.user_id)))
        return views

    # --- Policy ---

    async def update_member(
        self,
        group_id: UUID,
        actor_id: UUID,
        target_user_id: UUID,
        role: GroupRole | None = None,
        family_role: FamilyRole | None = None,
        *,
        clear_family_role: bool = False,
    ) -> GroupMember:
        """Change a member's group role and/or household role label.

        Every requested change is authorized against the target's current
        role before anything is written, and all of them land in one update:
        a denied change leaves the membership untouched.

        Family-role changes follow the role matrix, except that the owner may
        also label themselves. ``clear_family_role`` removes the label.

        Raises:
            NotAMemberError: The actor is not a member.
            GroupMemberNotFoundError: The target is not a member.
            InsufficientPermissionsError: The role matrix denies a change.
        """
        actor, target = await self._load_actor_and_target(group_id, actor_id, target_user_id)
        is_self = actor_id == target_user_id
        changes_family_role = family_role is not None or clear_family_role

        if role is not None:
            require_allowed(
                actor.role,
                GroupOperation.UPDATE_MEMBER_ROLE,
                target_role=target.role,
                is_self=is_self,
            )
            if not can_assign_role(actor.role, role):
                raise InsufficientPermissionsError(
                    GroupOperation.UPDATE_MEMBER_ROLE.value, actor.role.value
                )

        if changes_family_role and not (is_self and actor.role == GroupRole.OWNER):
            require_allowed(
                actor.role,
                GroupOperation.UPDATE_MEMBER_ROLE,
                target_role=target.role,
                is_self=is_self,
            )

        if role is None and not changes_family_role:
            return target

        updated = await self.update_role(
            group_id,
            target_user_id,
            role,
            family_role,
            clear_family_role=clear_family_role,
        )
        await self._log(
            group_id,
            actor_id,
            Actions.UPDATED_MEMBER,
            target_user_id,
            MemberActivityDetails(
                role=updated.role.value,
                previous_role=target.role.value if role is not None else None,
                family_role=updated.family_role.value if updated.family_role else None,
            ),
        )
        return updated

    async def remove_member(self, group_id: UUID, actor_id: UUID, target_user_id: UUID) -> None:
        """Remove another member from the group.

        There is no self-removal path: an owner can never remove themselves.
        """
        actor, target = await self._load_actor_and_target(group_id, actor_id, target_user_id)
        require_allowed(
            actor.role,
            GroupOperation.REMOVE_MEMBER,
            target_role=target.role,
            is_self=actor_id == target_user_id,
        )

        await self.remove(group_id, target_user_id)
        await self._log(
            group_id,
            actor_id,
            Actions.REMOVED_MEMBER,
            target_user_id,
            MemberActivityDetails(role=target.role.value),
        )

    # --- Internal helpers ---

    async def _load_actor_and_target(
        self, group_id: UUID, actor_id: UUID, target_user_id: UUID
    ) -> tuple[GroupMember, GroupMember]:
        actor = await require_membership(self._members, group_id, actor_id)
        if actor_id == target_user_id:
            return actor, actor
        target = await self._members.get(group_id, target_user_id)
        if target is None:
            raise GroupMemberNotFoundError(str(target_user_id))
        return actor, target

    async def _log(
        self,
        group_id: UUID,
        actor_id: UUID,
        action: str,
        target_user_id: UUID,
        details: MemberActivityDetails,
    ) -> None:
        if self._activity:
            await self._activity.record(
                group_id, actor_id, action, EntityTypes.MEMBER, target_user_id, details
            )

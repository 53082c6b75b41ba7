"""Group service layer: budget group lifecycle."""

from uuid import UUID

import structlog

from core.exceptions import GroupNotFoundError
from domain.authorization import GroupOperation, require_allowed
from domain.entities.activity import Actions, EntityTypes, GroupActivityDetails
from domain.entities.group import BudgetGroup, GroupRole, GroupWithRole
from domain.repositories.data_store import IDataStore
from domain.repositories.group_repository import GroupRepository
from domain.repositories.membership_repository import MembershipRepository
from domain.services.access import require_membership
from domain.services.activity_service import ActivityService
from domain.services.membership_service import MembershipService

logger = structlog.get_logger()


class GroupService:
    """Service layer for budget group management."""

    def __init__(
        self,
        store: IDataStore,
        membership_service: MembershipService,
        activity_service: ActivityService | None = None,
    ) -> None:
        self._groups = GroupRepository(store)
        self._members = MembershipRepository(store)
        self._memberships = membership_service
        self._activity = activity_service

    async def create(
        self,
        name: str,
        created_by: UUID,
        description: str | None = None,
        avatar_url: str | None = None,
    ) -> BudgetGroup:
        """Create a group together with its owner membership.

        The two writes are not atomic. If the owner membership cannot be
        stored, the group row is deleted again and the membership error is
        raised, so no ownerless group is left behind. Activity logging is
        best effort.
        """
        group = await self._groups.create(
            BudgetGroup(
                name=name,
                description=description,
                avatar_url=avatar_url,
                created_by=created_by,
            )
        )

        try:
            await self._memberships.add(group.id, created_by, GroupRole.OWNER)
        except Exception:
            logger.warning("group_owner_membership_failed", group_id=str(group.id))
            try:
                await self._groups.delete(group.id)
            except Exception:
                logger.exception("group_rollback_failed", group_id=str(group.id))
            raise

        logger.info("group_created", group_id=str(group.id), created_by=str(created_by))
        if self._activity:
            await self._activity.record(
                group.id,
                created_by,
                Actions.CREATED_GROUP,
                EntityTypes.GROUP,
                group.id,
                GroupActivityDetails(group_name=group.name),
            )
        return group

    async def get(self, group_id: UUID, actor_id: UUID) -> GroupWithRole:
        """Get a group as seen by one of its members."""
        member = await require_membership(self._members, group_id, actor_id)
        group = await self._groups.get(group_id)
        if group is None:
            raise GroupNotFoundError(str(group_id))
        return GroupWithRole(group=group, role=member.role, joined_at=member.joined_at)

    async def list_for_user(self, user_id: UUID) -> list[GroupWithRole]:
        """Every group the user belongs to, most recently joined first."""
        memberships = await self._members.list_for_user(user_id)
        groups = {g.id: g for g in await self._groups.get_many([m.group_id for m in memberships])}
        return [
            GroupWithRole(group=groups[m.group_id], role=m.role, joined_at=m.joined_at)
            for m in memberships
            if m.group_id in groups
        ]

    async def update(
        self,
        group_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        description: str | None = None,
        avatar_url: str | None = None,
        is_active: bool | None = None,
    ) -> BudgetGroup:
        """Update group settings. Requires owner or admin.

        Fields left as None are not changed.
        """
        member = await require_membership(self._members, group_id, actor_id)
        require_allowed(member.role, GroupOperation.MANAGE_GROUP)

        existing = await self._groups.get(group_id)
        if existing is None:
            raise GroupNotFoundError(str(group_id))

        changes = {
            "name": name,
            "description": description,
            "avatar_url": avatar_url,
            "is_active": is_active,
        }
        patch = {key: value for key, value in changes.items() if value is not None}
        if not patch:
            return existing

        updated = await self._groups.update(group_id, patch)
        if self._activity:
            await self._activity.record(
                group_id,
                actor_id,
                Actions.UPDATED_GROUP,
                EntityTypes.GROUP,
                group_id,
                GroupActivityDetails(
                    group_name=updated.name,
                    is_active=updated.is_active if "is_active" in patch else None,
                ),
            )
        return updated

    async def set_active(self, group_id: UUID, actor_id: UUID, is_active: bool) -> BudgetGroup:
        """Toggle whether the group is active. Requires owner or admin."""
        return await self.update(group_id, actor_id, is_active=is_active)

    async def delete(self, group_id: UUID, actor_id: UUID) -> None:
        """Delete a group. Requires owner or admin.

        Memberships, invitations, shared records and activity rows are
        removed by the store's cascades.
        """
        member = await require_membership(self._members, group_id, actor_id)
        require_allowed(member.role, GroupOperation.MANAGE_GROUP)

        await self._groups.delete(group_id)
        logger.info("group_deleted", group_id=str(group_id), deleted_by=str(actor_id))

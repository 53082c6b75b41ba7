"""Group membership repository over the data store."""

from typing import Any
from uuid import UUID

from domain.entities.group import GroupMember, GroupRole, parse_family_role
from domain.repositories.data_store import IDataStore, Row, Tables
from domain.repositories.filters import Eq, OrderBy


class MembershipRepository:
    """Maps ``group_members`` rows, keyed by (group_id, user_id)."""

    def __init__(self, store: IDataStore) -> None:
        self._store = store

    async def get(self, group_id: UUID, user_id: UUID) -> GroupMember | None:
        """Get a specific membership."""
        rows = await self._store.select(
            Tables.MEMBERS,
            [Eq("group_id", group_id), Eq("user_id", user_id)],
            limit=1,
        )
        return self._to_entity(rows[0]) if rows else None

    async def list_for_group(self, group_id: UUID) -> list[GroupMember]:
        """Get all members of a group, oldest membership first."""
        rows = await self._store.select(
            Tables.MEMBERS,
            [Eq("group_id", group_id)],
            order_by=[OrderBy("joined_at"), OrderBy("user_id")],
        )
        return [self._to_entity(row) for row in rows]

    async def list_for_user(self, user_id: UUID) -> list[GroupMember]:
        """Get every membership of a user, most recently joined first."""
        rows = await self._store.select(
            Tables.MEMBERS,
            [Eq("user_id", user_id)],
            order_by=[OrderBy("joined_at", descending=True), OrderBy("group_id")],
        )
        return [self._to_entity(row) for row in rows]

    async def add(self, member: GroupMember) -> GroupMember:
        """Insert a membership. Duplicate keys raise DuplicateRecordError."""
        row = await self._store.insert(Tables.MEMBERS, self._to_row(member))
        return self._to_entity(row)

    async def update(self, group_id: UUID, user_id: UUID, patch: dict[str, Any]) -> GroupMember:
        row = await self._store.update(
            Tables.MEMBERS, {"group_id": group_id, "user_id": user_id}, patch
        )
        return self._to_entity(row)

    async def remove(self, group_id: UUID, user_id: UUID) -> None:
        await self._store.delete(Tables.MEMBERS, {"group_id": group_id, "user_id": user_id})

    @staticmethod
    def _to_entity(row: Row) -> GroupMember:
        return GroupMember(
            group_id=row["group_id"],
            user_id=row["user_id"],
            role=GroupRole(row["role"]),
            family_role=parse_family_role(row.get("family_role")),
            joined_at=row["joined_at"],
        )

    @staticmethod
    def _to_row(entity: GroupMember) -> Row:
        return {
            "group_id": entity.group_id,
            "user_id": entity.user_id,
            "role": entity.role.value,
            "family_role": entity.family_role.value if entity.family_role else None,
            "joined_at": entity.joined_at,
        }

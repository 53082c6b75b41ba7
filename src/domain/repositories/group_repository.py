"""Budget group repository over the data store."""

from collections.abc import Collection
from datetime import datetime
from typing import Any
from uuid import UUID

from domain.entities.group import BudgetGroup
from domain.repositories.data_store import IDataStore, Row, Tables
from domain.repositories.filters import Eq, In


class GroupRepository:
    """Maps ``budget_groups`` rows to BudgetGroup entities."""

    def __init__(self, store: IDataStore) -> None:
        self._store = store

    async def get(self, id: UUID) -> BudgetGroup | None:
        """Get a group by ID."""
        rows = await self._store.select(Tables.GROUPS, [Eq("id", id)], limit=1)
        return self._to_entity(rows[0]) if rows else None

    async def get_many(self, ids: Collection[UUID]) -> list[BudgetGroup]:
        """Get every group whose ID is in ``ids``."""
        if not ids:
            return []
        rows = await self._store.select(Tables.GROUPS, [In("id", list(ids))])
        return [self._to_entity(row) for row in rows]

    async def create(self, group: BudgetGroup) -> BudgetGroup:
        """Create a new group."""
        row = await self._store.insert(Tables.GROUPS, self._to_row(group))
        return self._to_entity(row)

    async def update(self, id: UUID, patch: dict[str, Any]) -> BudgetGroup:
        """Apply a partial update and bump ``updated_at``."""
        row = await self._store.update(
            Tables.GROUPS, {"id": id}, {**patch, "updated_at": datetime.utcnow()}
        )
        return self._to_entity(row)

    async def delete(self, id: UUID) -> None:
        """Delete a group. Dependent rows are removed by the store."""
        await self._store.delete(Tables.GROUPS, {"id": id})

    @staticmethod
    def _to_entity(row: Row) -> BudgetGroup:
        return BudgetGroup(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            created_by=row["created_by"],
            is_active=bool(row.get("is_active", True)),
            avatar_url=row.get("avatar_url"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _to_row(entity: BudgetGroup) -> Row:
        return {
            "id": entity.id,
            "name": entity.name,
            "description": entity.description,
            "created_by": entity.created_by,
            "is_active": entity.is_active,
            "avatar_url": entity.avatar_url,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

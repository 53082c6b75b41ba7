"""Activity log repository over the data store."""

from typing import Any
from uuid import UUID

from domain.entities.activity import ActivityLogEntry
from domain.repositories.data_store import IDataStore, Row, Tables
from domain.repositories.filters import Eq, OrderBy


class ActivityRepository:
    """Append and read ``group_activity_log`` rows. Never updates or deletes."""

    def __init__(self, store: IDataStore) -> None:
        self._store = store

    async def create(self, row: dict[str, Any]) -> ActivityLogEntry:
        """Append a raw activity row."""
        stored = await self._store.insert(Tables.ACTIVITY, row)
        return self._to_entity(stored)

    async def list_for_group(self, group_id: UUID, limit: int) -> list[ActivityLogEntry]:
        """Get activity log entries for a group, newest first."""
        rows = await self._store.select(
            Tables.ACTIVITY,
            [Eq("group_id", group_id)],
            order_by=[OrderBy("created_at", descending=True), OrderBy("id")],
            limit=limit,
        )
        return [self._to_entity(row) for row in rows]

    @staticmethod
    def to_row(entry: ActivityLogEntry) -> Row:
        return {
            "id": entry.id,
            "group_id": entry.group_id,
            "user_id": entry.user_id,
            "action": entry.action,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "details": entry.details,
            "created_at": entry.created_at,
        }

    @staticmethod
    def _to_entity(row: Row) -> ActivityLogEntry:
        details = row.get("details")
        return ActivityLogEntry(
            id=row["id"],
            group_id=row["group_id"],
            user_id=row["user_id"],
            action=row["action"],
            entity_type=row["entity_type"],
            entity_id=row.get("entity_id"),
            details=details if isinstance(details, dict) else {},
            created_at=row["created_at"],
        )

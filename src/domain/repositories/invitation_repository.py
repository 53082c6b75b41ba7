"""Invitation repository over the data store."""

from uuid import UUID

from domain.entities.group import GroupRole
from domain.entities.invitation import Invitation, InvitationMetadata, InvitationStatus
from domain.repositories.data_store import IDataStore, Row, Tables
from domain.repositories.filters import Eq, OrderBy

_NEWEST_FIRST = [OrderBy("created_at", descending=True), OrderBy("id")]


class InvitationRepository:
    """Maps ``group_invitations`` rows to Invitation entities."""

    def __init__(self, store: IDataStore) -> None:
        self._store = store

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        row = await self._store.insert(Tables.INVITATIONS, self._to_row(invitation))
        return self._to_entity(row)

    async def get_by_id(self, id: UUID) -> Invitation | None:
        rows = await self._store.select(Tables.INVITATIONS, [Eq("id", id)], limit=1)
        return self._to_entity(rows[0]) if rows else None

    async def get_by_token(self, token: str) -> Invitation | None:
        """Get an invitation by its opaque token."""
        rows = await self._store.select(Tables.INVITATIONS, [Eq("token", token)], limit=1)
        return self._to_entity(rows[0]) if rows else None

    async def list_for_group(self, group_id: UUID) -> list[Invitation]:
        """Get all invitations of a group, newest first."""
        rows = await self._store.select(
            Tables.INVITATIONS, [Eq("group_id", group_id)], order_by=_NEWEST_FIRST
        )
        return [self._to_entity(row) for row in rows]

    async def list_pending_for_email(self, email: str) -> list[Invitation]:
        """Get pending invitations addressed to ``email``, newest first."""
        rows = await self._store.select(
            Tables.INVITATIONS,
            [Eq("email", email), Eq("status", InvitationStatus.PENDING.value)],
            order_by=_NEWEST_FIRST,
        )
        return [self._to_entity(row) for row in rows]

    async def update_status(self, id: UUID, status: InvitationStatus) -> Invitation:
        """Persist a status transition."""
        row = await self._store.update(Tables.INVITATIONS, {"id": id}, {"status": status.value})
        return self._to_entity(row)

    async def delete(self, id: UUID) -> None:
        await self._store.delete(Tables.INVITATIONS, {"id": id})

    @staticmethod
    def _to_entity(row: Row) -> Invitation:
        return Invitation(
            id=row["id"],
            group_id=row["group_id"],
            invited_by=row["invited_by"],
            email=row["email"],
            role=GroupRole(row["role"]),
            status=InvitationStatus(row["status"]),
            token=row["token"],
            expires_at=row["expires_at"],
            created_at=row["created_at"],
            metadata=InvitationMetadata.parse(row.get("metadata")),
        )

    @staticmethod
    def _to_row(entity: Invitation) -> Row:
        return {
            "id": entity.id,
            "group_id": entity.group_id,
            "invited_by": entity.invited_by,
            "email": entity.email,
            "role": entity.role.value,
            "status": entity.status.value,
            "token": entity.token,
            "expires_at": entity.expires_at,
            "created_at": entity.created_at,
            "metadata": entity.metadata.to_dict(),
        }

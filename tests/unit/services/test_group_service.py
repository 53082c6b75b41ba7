"""Unit tests for GroupService."""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    DataStoreError,
    InsufficientPermissionsError,
    NotAMemberError,
)
from domain.entities.activity import Actions
from domain.entities.group import GroupRole
from domain.repositories.data_store import Tables
from tests.unit.conftest import InMemoryDataStore, Services


# --- create ---


class TestCreate:
    @pytest.mark.asyncio
    async def test_creates_group_with_owner_membership(
        self, services: Services, store: InMemoryDataStore, owner_id: UUID
    ):
        group = await services.groups.create("Family", owner_id, description="Shared")

        assert group.name == "Family"
        assert group.created_by == owner_id
        members = store.rows(Tables.MEMBERS)
        assert len(members) == 1
        assert members[0]["user_id"] == owner_id
        assert members[0]["role"] == "owner"
        assert services.actions() == [Actions.CREATED_GROUP]

    @pytest.mark.asyncio
    async def test_deletes_group_when_owner_membership_fails(
        self, services: Services, store: InMemoryDataStore, owner_id: UUID
    ):
        store.fail(Tables.MEMBERS, "insert")

        with pytest.raises(DataStoreError):
            await services.groups.create("Family", owner_id)

        assert store.rows(Tables.GROUPS) == []
        assert store.rows(Tables.ACTIVITY) == []

    @pytest.mark.asyncio
    async def test_activity_failure_does_not_fail_creation(
        self, services: Services, store: InMemoryDataStore, owner_id: UUID
    ):
        store.fail(Tables.ACTIVITY, "insert")

        group = await services.groups.create("Family", owner_id)

        assert group.id == store.rows(Tables.GROUPS)[0]["id"]


# --- get / list ---


class TestRead:
    @pytest.mark.asyncio
    async def test_get_returns_callers_role(self, services: Services, owner_id: UUID):
        group = await services.group_with(owner_id, viewer=GroupRole.VIEWER)

        result = await services.groups.get(group.id, services.users["viewer"])

        assert result.group.id == group.id
        assert result.role == GroupRole.VIEWER

    @pytest.mark.asyncio
    async def test_get_rejects_non_members(self, services: Services, owner_id: UUID):
        group = await services.group_with(owner_id)

        with pytest.raises(NotAMemberError):
            await services.groups.get(group.id, uuid4())

    @pytest.mark.asyncio
    async def test_list_for_user_most_recent_membership_first(
        self, services: Services, store: InMemoryDataStore, owner_id: UUID
    ):
        first = await services.groups.create("First", owner_id)
        second = await services.groups.create("Second", owner_id)
        base = datetime(2024, 1, 1)
        for row in store.rows(Tables.MEMBERS):
            row["joined_at"] = base if row["group_id"] == first.id else base + timedelta(days=1)

        result = await services.groups.list_for_user(owner_id)

        assert [g.group.id for g in result] == [second.id, first.id]
        assert all(g.role == GroupRole.OWNER for g in result)

    @pytest.mark.asyncio
    async def test_list_for_user_without_groups(self, services: Services):
        assert await services.groups.list_for_user(uuid4()) == []


# --- update / delete ---


class TestUpdate:
    @pytest.mark.asyncio
    async def test_admin_can_update(self, services: Services, owner_id: UUID):
        group = await services.group_with(owner_id, admin=GroupRole.ADMIN)

        updated = await services.groups.update(group.id, services.users["admin"], name="Renamed")

        assert updated.name == "Renamed"
        assert services.actions()[-1] == Actions.UPDATED_GROUP

    @pytest.mark.asyncio
    async def test_member_cannot_update(self, services: Services, owner_id: UUID):
        group = await services.group_with(owner_id, member=GroupRole.MEMBER)

        with pytest.raises(InsufficientPermissionsError):
            await services.groups.update(group.id, services.users["member"], name="Nope")

    @pytest.mark.asyncio
    async def test_empty_update_is_a_no_op(
        self, services: Services, store: InMemoryDataStore, owner_id: UUID
    ):
        group = await services.group_with(owner_id)
        logged = len(store.rows(Tables.ACTIVITY))

        result = await services.groups.update(group.id, owner_id)

        assert result.name == group.name
        assert len(store.rows(Tables.ACTIVITY)) == logged

    @pytest.mark.asyncio
    async def test_set_active_records_flag(
        self, services: Services, store: InMemoryDataStore, owner_id: UUID
    ):
        group = await services.group_with(owner_id)

        updated = await services.groups.set_active(group.id, owner_id, False)

        assert updated.is_active is False
        assert store.rows(Tables.ACTIVITY)[-1]["details"] == {
            "group_name": "Household",
            "is_active": False,
        }


class TestDelete:
    @pytest.mark.asyncio
    async def test_owner_can_delete(
        self, services: Services, store: InMemoryDataStore, owner_id: UUID
    ):
        group = await services.group_with(owner_id)

        await services.groups.delete(group.id, owner_id)

        assert store.rows(Tables.GROUPS) == []

    @pytest.mark.asyncio
    async def test_viewer_cannot_delete(self, services: Services, owner_id: UUID):
        group = await services.group_with(owner_id, viewer=GroupRole.VIEWER)

        with pytest.raises(InsufficientPermissionsError):
            await services.groups.delete(group.id, services.users["viewer"])

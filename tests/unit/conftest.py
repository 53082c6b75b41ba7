"""Shared fixtures for unit tests."""

import copy
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

import pytest

from core.exceptions import DataStoreError, DuplicateRecordError, RecordNotFoundError
from domain.entities.group import BudgetGroup, GroupRole
from domain.repositories.data_store import Row, Tables
from domain.repositories.filters import Filter, OrderBy, matches
from domain.services.activity_service import ActivityService
from domain.services.aggregation_service import AggregationService
from domain.services.group_budget_service import GroupBudgetService
from domain.services.group_service import GroupService
from domain.services.group_transaction_service import GroupTransactionService
from domain.services.invitation_service import InvitationService
from domain.services.membership_service import MembershipService

_GENERATED = object()

# Unique keys enforced by the fake, per table
_UNIQUE_KEYS: dict[str, list[tuple[str, ...]]] = {
    Tables.PROFILES: [("id",)],
    Tables.GROUPS: [("id",)],
    Tables.MEMBERS: [("group_id", "user_id")],
    Tables.INVITATIONS: [("id",), ("token",)],
    Tables.ACTIVITY: [("id",)],
    Tables.TRANSACTIONS: [("id",)],
    Tables.BUDGETS: [("id",)],
}


class InMemoryDataStore:
    """Fake IDataStore keeping rows in dicts.

    Failures can be injected per (table, operation), e.g.
    ``store.fail(Tables.MEMBERS, "insert")``. Injected failures fire
    ``times`` times (forever when None), then the store behaves again.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[Row]] = {name: [] for name in _UNIQUE_KEYS}
        self.calls: list[tuple[str, str]] = []
        self.procedure_result: Any = _GENERATED
        self._failures: dict[tuple[str, str], tuple[Exception, int | None]] = {}

    # --- Test helpers ---

    def fail(
        self,
        table: str,
        operation: str,
        error: Exception | None = None,
        times: int | None = None,
    ) -> None:
        self._failures[(table, operation)] = (
            error or DataStoreError(operation, table, "injected"),
            times,
        )

    def rows(self, table: str) -> list[Row]:
        return self.tables[table]

    def add_profile(
        self, email: str | None = None, full_name: str | None = None, id: UUID | None = None
    ) -> UUID:
        profile_id = id or uuid4()
        self.tables[Tables.PROFILES].append(
            {
                "id": profile_id,
                "email": email,
                "full_name": full_name,
                "avatar_url": None,
                "created_at": datetime.utcnow(),
            }
        )
        return profile_id

    # --- IDataStore ---

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        self._record(table, "insert")
        stored = dict(row)
        if table != Tables.MEMBERS:
            stored.setdefault("id", uuid4())
        if table == Tables.ACTIVITY:
            stored.setdefault("details", {})
            stored.setdefault("created_at", datetime.utcnow())
        for key in _UNIQUE_KEYS[table]:
            if any(all(r.get(c) == stored.get(c) for c in key) for r in self.tables[table]):
                raise DuplicateRecordError(table)
        self.tables[table].append(stored)
        return copy.deepcopy(stored)

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Row]:
        self._record(table, "select")
        rows = [r for r in self.tables[table] if all(matches(r, f) for f in filters)]
        for order in reversed(order_by):
            rows.sort(
                key=lambda r: (r.get(order.column) is None, r.get(order.column)),
                reverse=order.descending,
            )
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(r) for r in rows]

    async def update(self, table: str, key: Mapping[str, Any], patch: Mapping[str, Any]) -> Row:
        self._record(table, "update")
        for row in self.tables[table]:
            if all(row.get(c) == v for c, v in key.items()):
                row.update(patch)
                return copy.deepcopy(row)
        raise RecordNotFoundError(table, dict(key))

    async def delete(self, table: str, key: Mapping[str, Any]) -> None:
        self._record(table, "delete")
        before = len(self.tables[table])
        self.tables[table] = [
            r for r in self.tables[table] if not all(r.get(c) == v for c, v in key.items())
        ]
        if len(self.tables[table]) == before:
            raise RecordNotFoundError(table, dict(key))

    async def call(self, procedure: str, args: Mapping[str, Any] | None = None) -> Any:
        self._record(procedure, "call")
        if self.procedure_result is _GENERATED:
            return f"store-token-{uuid4().hex}"
        return self.procedure_result

    def _record(self, table: str, operation: str) -> None:
        self.calls.append((table, operation))
        failure = self._failures.get((table, operation))
        if failure is None:
            return
        error, times = failure
        if times is not None:
            if times <= 1:
                del self._failures[(table, operation)]
            else:
                self._failures[(table, operation)] = (error, times - 1)
        raise error


@pytest.fixture
def store() -> InMemoryDataStore:
    """Create a fresh in-memory data store."""
    return InMemoryDataStore()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    """A random actor ID (distinct from user_id)."""
    return uuid4()


class Services:
    """Every group service wired to one in-memory store."""

    def __init__(self, store: InMemoryDataStore) -> None:
        self.store = store
        self.activity = ActivityService(store)
        self.memberships = MembershipService(store, activity_service=self.activity)
        self.groups = GroupService(store, self.memberships, activity_service=self.activity)
        self.invitations = InvitationService(store, self.memberships, activity_service=self.activity)
        self.transactions = GroupTransactionService(store, activity_service=self.activity)
        self.budgets = GroupBudgetService(store, activity_service=self.activity)
        self.aggregation = AggregationService(store)
        self.users: dict[str, UUID] = {}

    async def group_with(self, owner_id: UUID, **members: GroupRole) -> BudgetGroup:
        """Create a group owned by ``owner_id``; kwargs map names to roles.

        Member IDs are stored on ``self.users`` under the given names.
        """
        group = await self.groups.create("Household", owner_id)
        for name, role in members.items():
            member_id = self.store.add_profile(email=f"{name}@example.com", full_name=name.title())
            await self.memberships.add(group.id, member_id, role)
            self.users[name] = member_id
        return group

    def actions(self) -> list[str]:
        return [row["action"] for row in self.store.rows(Tables.ACTIVITY)]


@pytest.fixture
def services(store: InMemoryDataStore) -> Services:
    return Services(store)


@pytest.fixture
def owner_id(store: InMemoryDataStore) -> UUID:
    """An owner with a stored profile."""
    return store.add_profile(email="owner@example.com", full_name="Olive Owner")

"""Data store protocol: the only external collaborator of the group core."""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from domain.repositories.filters import Filter, OrderBy

Row = dict[str, Any]


class Tables:
    """Table names known to the store."""

    PROFILES = "profiles"
    GROUPS = "budget_groups"
    MEMBERS = "group_members"
    INVITATIONS = "group_invitations"
    ACTIVITY = "group_activity_log"
    TRANSACTIONS = "group_transactions"
    BUDGETS = "group_budgets"


class IDataStore(Protocol):
    """Row-level CRUD, filtered queries and server-side procedures.

    Every call is independent: no transaction spans two calls.

    Implementations raise:
        DataStoreError: the store failed (Upstream).
        DuplicateRecordError: a unique key rejected an insert/update (Conflict).
        ConstraintViolationError: a foreign key or CHECK constraint rejected
            the write (Validation).
        RecordNotFoundError: update/delete found no row for ``key``.
    """

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert a row and return it as stored."""
        ...

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Row]:
        """Return rows matching all filters."""
        ...

    async def update(
        self, table: str, key: Mapping[str, Any], patch: Mapping[str, Any]
    ) -> Row:
        """Apply ``patch`` to the row identified by ``key`` and return it."""
        ...

    async def delete(self, table: str, key: Mapping[str, Any]) -> None:
        """Delete the row identified by ``key``."""
        ...

    async def call(self, procedure: str, args: Mapping[str, Any] | None = None) -> Any:
        """Run a privileged server-side procedure and return its result."""
        ...

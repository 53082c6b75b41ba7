"""Group transaction and budget repositories over the data store."""

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from domain.entities.finance import (
    BudgetPeriod,
    GroupBudget,
    GroupTransaction,
    TransactionType,
)
from domain.repositories.data_store import IDataStore, Row, Tables
from domain.repositories.filters import Eq, Filter, OrderBy


def _decimal(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class TransactionRepository:
    """Maps ``group_transactions`` rows."""

    def __init__(self, store: IDataStore) -> None:
        self._store = store

    async def get(self, id: UUID) -> GroupTransaction | None:
        rows = await self._store.select(Tables.TRANSACTIONS, [Eq("id", id)], limit=1)
        return self._to_entity(rows[0]) if rows else None

    async def find(self, filters: Sequence[Filter]) -> list[GroupTransaction]:
        """Transactions matching ``filters``, newest date first."""
        rows = await self._store.select(
            Tables.TRANSACTIONS,
            filters,
            order_by=[
                OrderBy("date", descending=True),
                OrderBy("created_at", descending=True),
                OrderBy("id"),
            ],
        )
        return [self._to_entity(row) for row in rows]

    async def amounts(self, filters: Sequence[Filter]) -> list[tuple[Decimal, str]]:
        """(amount, type) pairs for aggregation, skipping entity mapping."""
        rows = await self._store.select(Tables.TRANSACTIONS, filters)
        return [(_decimal(row["amount"]), str(row.get("type", ""))) for row in rows]

    async def create(self, transaction: GroupTransaction) -> GroupTransaction:
        row = await self._store.insert(Tables.TRANSACTIONS, self._to_row(transaction))
        return self._to_entity(row)

    async def update(self, id: UUID, patch: dict[str, Any]) -> GroupTransaction:
        row = await self._store.update(
            Tables.TRANSACTIONS, {"id": id}, {**patch, "updated_at": datetime.utcnow()}
        )
        return self._to_entity(row)

    async def delete(self, id: UUID) -> None:
        await self._store.delete(Tables.TRANSACTIONS, {"id": id})

    @staticmethod
    def _to_entity(row: Row) -> GroupTransaction:
        return GroupTransaction(
            id=row["id"],
            group_id=row["group_id"],
            created_by=row["created_by"],
            category_id=row.get("category_id"),
            amount=_decimal(row["amount"]),
            type=TransactionType(row["type"]),
            description=row.get("description"),
            date=row["date"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _to_row(entity: GroupTransaction) -> Row:
        return {
            "id": entity.id,
            "group_id": entity.group_id,
            "created_by": entity.created_by,
            "category_id": entity.category_id,
            "amount": entity.amount,
            "type": entity.type.value,
            "description": entity.description,
            "date": entity.date,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }


class BudgetRepository:
    """Maps ``group_budgets`` rows."""

    def __init__(self, store: IDataStore) -> None:
        self._store = store

    async def get(self, id: UUID) -> GroupBudget | None:
        rows = await self._store.select(Tables.BUDGETS, [Eq("id", id)], limit=1)
        return self._to_entity(rows[0]) if rows else None

    async def find(self, filters: Sequence[Filter]) -> list[GroupBudget]:
        """Budgets matching ``filters``, ordered by name."""
        rows = await self._store.select(
            Tables.BUDGETS, filters, order_by=[OrderBy("name"), OrderBy("id")]
        )
        return [self._to_entity(row) for row in rows]

    async def create(self, budget: GroupBudget) -> GroupBudget:
        row = await self._store.insert(Tables.BUDGETS, self._to_row(budget))
        return self._to_entity(row)

    async def update(self, id: UUID, patch: dict[str, Any]) -> GroupBudget:
        row = await self._store.update(
            Tables.BUDGETS, {"id": id}, {**patch, "updated_at": datetime.utcnow()}
        )
        return self._to_entity(row)

    async def delete(self, id: UUID) -> None:
        await self._store.delete(Tables.BUDGETS, {"id": id})

    @staticmethod
    def _to_entity(row: Row) -> GroupBudget:
        return GroupBudget(
            id=row["id"],
            group_id=row["group_id"],
            created_by=row["created_by"],
            category_id=row.get("category_id"),
            name=row["name"],
            amount=_decimal(row["amount"]),
            period=BudgetPeriod(row["period"]),
            start_date=row["start_date"],
            end_date=row.get("end_date"),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _to_row(entity: GroupBudget) -> Row:
        return {
            "id": entity.id,
            "group_id": entity.group_id,
            "created_by": entity.created_by,
            "category_id": entity.category_id,
            "name": entity.name,
            "amount": entity.amount,
            "period": entity.period.value,
            "start_date": entity.start_date,
            "end_date": entity.end_date,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }

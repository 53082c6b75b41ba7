"""SQLAlchemy implementation of the IDataStore protocol."""

import re
from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from sqlalchemy import ColumnElement, Table, and_, delete, insert, or_, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import (
    ConstraintViolationError,
    DataStoreError,
    DuplicateRecordError,
    RecordNotFoundError,
)
from domain.repositories.data_store import Row
from domain.repositories.filters import Eq, Filter, Gte, In, Lte, OpenEndedOnOrAfter, OrderBy
from infrastructure.database.models import Base

logger = structlog.get_logger()

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# SQLSTATE for unique_violation (PostgreSQL)
_UNIQUE_VIOLATION = "23505"


class SQLAlchemyDataStore:
    """Row-level store over the ORM tables.

    Each call opens its own session and commits before returning, so no
    transaction spans two calls. Column names (not ORM attribute names)
    are used as row keys.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        tbl = self._table(table)
        stmt = insert(tbl).values(**row).returning(*tbl.c)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                stored = dict(result.mappings().one())
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._translate(e, "insert", table) from e
        return stored

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> list[Row]:
        tbl = self._table(table)
        stmt = select(tbl)
        if filters:
            stmt = stmt.where(and_(*(self._clause(tbl, flt) for flt in filters)))
        for order in order_by:
            column = tbl.c[order.column]
            stmt = stmt.order_by(column.desc() if order.descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                return [dict(row) for row in result.mappings()]
            except SQLAlchemyError as e:
                raise self._translate(e, "select", table) from e

    async def update(self, table: str, key: Mapping[str, Any], patch: Mapping[str, Any]) -> Row:
        tbl = self._table(table)
        stmt = (
            update(tbl)
            .where(*(tbl.c[name] == value for name, value in key.items()))
            .values(**patch)
            .returning(*tbl.c)
        )
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                stored = result.mappings().one_or_none()
                if stored is None:
                    await session.rollback()
                    raise RecordNotFoundError(table, dict(key))
                row = dict(stored)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._translate(e, "update", table) from e
        return row

    async def delete(self, table: str, key: Mapping[str, Any]) -> None:
        tbl = self._table(table)
        stmt = delete(tbl).where(*(tbl.c[name] == value for name, value in key.items()))
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                if result.rowcount == 0:  # type: ignore[attr-defined]
                    await session.rollback()
                    raise RecordNotFoundError(table, dict(key))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._translate(e, "delete", table) from e

    async def call(self, procedure: str, args: Mapping[str, Any] | None = None) -> Any:
        """Run ``SELECT procedure(:arg, ...)`` and return the scalar result."""
        if not _IDENTIFIER.match(procedure):
            raise DataStoreError("call", procedure, "invalid procedure name")

        args = dict(args or {})
        params = ", ".join(f":{name}" for name in args)
        async with self._session_factory() as session:
            try:
                result = await session.execute(text(f"SELECT {procedure}({params})"), args)
                value = result.scalar()
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise self._translate(e, "call", procedure) from e
        return value

    # --- Internal helpers ---

    @staticmethod
    def _table(name: str) -> Table:
        try:
            return Base.metadata.tables[name]
        except KeyError:
            raise DataStoreError("lookup", name, "unknown table") from None

    @staticmethod
    def _clause(tbl: Table, flt: Filter) -> ColumnElement[bool]:
        column = tbl.c[flt.column]
        if isinstance(flt, Eq):
            return column.is_(None) if flt.value is None else column == flt.value
        if isinstance(flt, Gte):
            return column >= flt.value
        if isinstance(flt, Lte):
            return column <= flt.value
        if isinstance(flt, In):
            return column.in_(list(flt.values))
        if isinstance(flt, OpenEndedOnOrAfter):
            return or_(column.is_(None), column >= flt.value)
        raise DataStoreError("select", tbl.name, f"unsupported filter {flt!r}")

    @staticmethod
    def _translate(error: SQLAlchemyError, operation: str, table: str) -> Exception:
        if isinstance(error, IntegrityError):
            if _is_unique_violation(error):
                logger.info(
                    "data_store_conflict", operation=operation, table=table, error=str(error.orig)
                )
                return DuplicateRecordError(table)
            logger.warning(
                "data_store_constraint_violation",
                operation=operation,
                table=table,
                error=str(error.orig),
            )
            return ConstraintViolationError(table)
        logger.error("data_store_error", operation=operation, table=table, error=str(error))
        return DataStoreError(operation, table, str(error))


def _is_unique_violation(error: IntegrityError) -> bool:
    """Tell unique/primary-key clashes apart from foreign-key and CHECK failures."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return str(sqlstate) == _UNIQUE_VIOLATION
    # SQLite reports primary-key clashes as UNIQUE failures too
    return "UNIQUE constraint failed" in str(orig)

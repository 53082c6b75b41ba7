"""Group transaction service: role-gated shared transactions."""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog

from core.exceptions import TransactionNotFoundError
from domain.authorization import GroupOperation, require_allowed
from domain.entities.activity import Actions, EntityTypes, TransactionActivityDetails
from domain.entities.finance import GroupTransaction, TransactionType
from domain.repositories.data_store import IDataStore
from domain.repositories.filters import Eq, Filter, Gte, Lte
from domain.repositories.finance_repository import TransactionRepository
from domain.repositories.membership_repository import MembershipRepository
from domain.repositories.profile_repository import ProfileRepository
from domain.services.access import require_membership
from domain.services.activity_service import ActivityService
from domain.services.enrichment import attach_creators
from domain.services.patching import build_patch

logger = structlog.get_logger()

_REQUIRED_FIELDS = frozenset({"amount", "type", "date"})
_NULLABLE_FIELDS = frozenset({"category_id", "description"})


class GroupTransactionService:
    """Service layer for transactions shared within a group.

    Any member may read. Owners, admins and members may create; edits and
    deletes are limited to owners, admins and the transaction's creator.
    """

    def __init__(
        self,
        store: IDataStore,
        activity_service: ActivityService | None = None,
    ) -> None:
        self._transactions = TransactionRepository(store)
        self._members = MembershipRepository(store)
        self._profiles = ProfileRepository(store)
        self._activity = activity_service

    async def list_for_group(
        self,
        group_id: UUID,
        actor_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        category_id: UUID | None = None,
        type: TransactionType | None = None,
        created_by: UUID | None = None,
    ) -> list[GroupTransaction]:
        """List group transactions, newest date first.

        Date bounds are inclusive. Every other filter is an exact match.
        """
        await require_membership(self._members, group_id, actor_id)

        filters: list[Filter] = [Eq("group_id", group_id)]
        if start_date is not None:
            filters.append(Gte("date", start_date))
        if end_date is not None:
            filters.append(Lte("date", end_date))
        if category_id is not None:
            filters.append(Eq("category_id", category_id))
        if type is not None:
            filters.append(Eq("type", type.value))
        if created_by is not None:
            filters.append(Eq("created_by", created_by))

        transactions = await self._transactions.find(filters)
        await attach_creators(self._profiles, transactions)
        return transactions

    async def get(self, group_id: UUID, transaction_id: UUID, actor_id: UUID) -> GroupTransaction:
        await require_membership(self._members, group_id, actor_id)
        transaction = await self._get_in_group(group_id, transaction_id)
        await attach_creators(self._profiles, [transaction])
        return transaction

    async def create(
        self,
        group_id: UUID,
        actor_id: UUID,
        amount: Decimal,
        type: TransactionType,
        date: date,
        category_id: UUID | None = None,
        description: str | None = None,
    ) -> GroupTransaction:
        """Record a shared transaction. Viewers may not create."""
        member = await require_membership(self._members, group_id, actor_id)
        require_allowed(member.role, GroupOperation.CREATE_RECORD)

        transaction = await self._transactions.create(
            GroupTransaction(
                group_id=group_id,
                created_by=actor_id,
                amount=amount,
                type=type,
                date=date,
                category_id=category_id,
                description=description,
            )
        )
        logger.info(
            "group_transaction_created",
            group_id=str(group_id),
            transaction_id=str(transaction.id),
        )
        await self._log(transaction, actor_id, Actions.CREATED)
        return transaction

    async def update(
        self, group_id: UUID, transaction_id: UUID, actor_id: UUID, **changes: Any
    ) -> GroupTransaction:
        """Update a transaction with the given fields; omitted fields are unchanged.

        ``category_id=None`` and ``description=None`` clear those fields.

        Raises:
            InvalidFieldError: A field cannot be set to the given value.
        """
        member = await require_membership(self._members, group_id, actor_id)
        existing = await self._get_in_group(group_id, transaction_id)
        require_allowed(
            member.role,
            GroupOperation.EDIT_RECORD,
            is_creator=existing.created_by == actor_id,
        )

        patch = build_patch(changes, _REQUIRED_FIELDS, _NULLABLE_FIELDS)
        if not patch:
            return existing

        updated = await self._transactions.update(transaction_id, patch)
        await self._log(updated, actor_id, Actions.UPDATED)
        return updated

    async def delete(self, group_id: UUID, transaction_id: UUID, actor_id: UUID) -> None:
        member = await require_membership(self._members, group_id, actor_id)
        existing = await self._get_in_group(group_id, transaction_id)
        require_allowed(
            member.role,
            GroupOperation.DELETE_RECORD,
            is_creator=existing.created_by == actor_id,
        )

        await self._transactions.delete(transaction_id)
        logger.info(
            "group_transaction_deleted",
            group_id=str(group_id),
            transaction_id=str(transaction_id),
        )
        await self._log(existing, actor_id, Actions.DELETED)

    # --- Internal helpers ---

    async def _get_in_group(self, group_id: UUID, transaction_id: UUID) -> GroupTransaction:
        transaction = await self._transactions.get(transaction_id)
        if transaction is None or transaction.group_id != group_id:
            raise TransactionNotFoundError(str(transaction_id))
        return transaction

    async def _log(self, transaction: GroupTransaction, actor_id: UUID, action: str) -> None:
        if self._activity:
            await self._activity.record(
                transaction.group_id,
                actor_id,
                action,
                EntityTypes.TRANSACTION,
                transaction.id,
                TransactionActivityDetails(amount=transaction.amount, type=transaction.type.value),
            )

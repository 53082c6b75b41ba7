"""Group budget service: role-gated shared budgets."""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog

from core.exceptions import BudgetNotFoundError, InvalidFieldError
from domain.authorization import GroupOperation, require_allowed
from domain.entities.activity import Actions, BudgetActivityDetails, EntityTypes
from domain.entities.finance import BudgetPeriod, GroupBudget
from domain.repositories.data_store import IDataStore
from domain.repositories.filters import Eq, Filter, Lte, OpenEndedOnOrAfter
from domain.repositories.finance_repository import BudgetRepository
from domain.repositories.membership_repository import MembershipRepository
from domain.repositories.profile_repository import ProfileRepository
from domain.services.access import require_membership
from domain.services.activity_service import ActivityService
from domain.services.enrichment import attach_creators
from domain.services.patching import build_patch

logger = structlog.get_logger()

_REQUIRED_FIELDS = frozenset({"name", "amount", "period", "start_date"})
_NULLABLE_FIELDS = frozenset({"end_date", "category_id"})


class GroupBudgetService:
    """Service layer for budgets shared within a group.

    Same permissions as group transactions.
    """

    def __init__(
        self,
        store: IDataStore,
        activity_service: ActivityService | None = None,
    ) -> None:
        self._budgets = BudgetRepository(store)
        self._members = MembershipRepository(store)
        self._profiles = ProfileRepository(store)
        self._activity = activity_service

    async def list_for_group(
        self,
        group_id: UUID,
        actor_id: UUID,
        category_id: UUID | None = None,
        period: BudgetPeriod | None = None,
    ) -> list[GroupBudget]:
        """List group budgets ordered by name."""
        await require_membership(self._members, group_id, actor_id)

        filters: list[Filter] = [Eq("group_id", group_id)]
        if category_id is not None:
            filters.append(Eq("category_id", category_id))
        if period is not None:
            filters.append(Eq("period", period.value))

        budgets = await self._budgets.find(filters)
        await attach_creators(self._profiles, budgets)
        return budgets

    async def list_active(
        self, group_id: UUID, actor_id: UUID, today: date | None = None
    ) -> list[GroupBudget]:
        """Budgets whose window contains ``today``; open-ended ones included."""
        await require_membership(self._members, group_id, actor_id)

        today = today or date.today()
        budgets = await self._budgets.find(
            [
                Eq("group_id", group_id),
                Lte("start_date", today),
                OpenEndedOnOrAfter("end_date", today),
            ]
        )
        await attach_creators(self._profiles, budgets)
        return budgets

    async def get(self, group_id: UUID, budget_id: UUID, actor_id: UUID) -> GroupBudget:
        await require_membership(self._members, group_id, actor_id)
        budget = await self._get_in_group(group_id, budget_id)
        await attach_creators(self._profiles, [budget])
        return budget

    async def create(
        self,
        group_id: UUID,
        actor_id: UUID,
        name: str,
        amount: Decimal,
        period: BudgetPeriod,
        start_date: date,
        end_date: date | None = None,
        category_id: UUID | None = None,
    ) -> GroupBudget:
        """Create a shared budget. Viewers may not create."""
        member = await require_membership(self._members, group_id, actor_id)
        require_allowed(member.role, GroupOperation.CREATE_RECORD)
        _check_window(start_date, end_date)

        budget = await self._budgets.create(
            GroupBudget(
                group_id=group_id,
                created_by=actor_id,
                name=name,
                amount=amount,
                period=period,
                start_date=start_date,
                end_date=end_date,
                category_id=category_id,
            )
        )
        logger.info("group_budget_created", group_id=str(group_id), budget_id=str(budget.id))
        await self._log(budget, actor_id, Actions.CREATED)
        return budget

    async def update(
        self, group_id: UUID, budget_id: UUID, actor_id: UUID, **changes: Any
    ) -> GroupBudget:
        """Update a budget with the given fields; omitted fields are unchanged.

        ``end_date=None`` makes the budget open-ended and ``category_id=None``
        makes it cover every category. The resulting window is checked
        against the stored one.

        Raises:
            InvalidFieldError: A field cannot be set to the given value, or
                the window would end before it starts.
        """
        member = await require_membership(self._members, group_id, actor_id)
        existing = await self._get_in_group(group_id, budget_id)
        require_allowed(
            member.role,
            GroupOperation.EDIT_RECORD,
            is_creator=existing.created_by == actor_id,
        )

        patch = build_patch(changes, _REQUIRED_FIELDS, _NULLABLE_FIELDS)
        if not patch:
            return existing
        _check_window(
            patch.get("start_date", existing.start_date),
            patch["end_date"] if "end_date" in patch else existing.end_date,
        )

        updated = await self._budgets.update(budget_id, patch)
        await self._log(updated, actor_id, Actions.UPDATED)
        return updated

    async def delete(self, group_id: UUID, budget_id: UUID, actor_id: UUID) -> None:
        member = await require_membership(self._members, group_id, actor_id)
        existing = await self._get_in_group(group_id, budget_id)
        require_allowed(
            member.role,
            GroupOperation.DELETE_RECORD,
            is_creator=existing.created_by == actor_id,
        )

        await self._budgets.delete(budget_id)
        logger.info("group_budget_deleted", group_id=str(group_id), budget_id=str(budget_id))
        await self._log(existing, actor_id, Actions.DELETED)

    # --- Internal helpers ---

    async def _get_in_group(self, group_id: UUID, budget_id: UUID) -> GroupBudget:
        budget = await self._budgets.get(budget_id)
        if budget is None or budget.group_id != group_id:
            raise BudgetNotFoundError(str(budget_id))
        return budget

    async def _log(self, budget: GroupBudget, actor_id: UUID, action: str) -> None:
        if self._activity:
            await self._activity.record(
                budget.group_id,
                actor_id,
                action,
                EntityTypes.BUDGET,
                budget.id,
                BudgetActivityDetails(name=budget.name, amount=budget.amount),
            )


def _check_window(start_date: date, end_date: date | None) -> None:
    if end_date is not None and end_date < start_date:
        raise InvalidFieldError("end_date", "must not be before start_date")

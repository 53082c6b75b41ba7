"""Aggregation service: figures derived on demand from group records."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from core.exceptions import BudgetNotFoundError
from domain.entities.finance import BudgetProgress, TransactionSummary, TransactionType
from domain.repositories.data_store import IDataStore
from domain.repositories.filters import Eq, Filter, Gte, Lte
from domain.repositories.finance_repository import BudgetRepository, TransactionRepository
from domain.repositories.membership_repository import MembershipRepository
from domain.services.access import require_membership

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


class AggregationService:
    """Computes budget progress and income/expense summaries.

    Nothing is cached; every call reads the store again.
    """

    def __init__(self, store: IDataStore) -> None:
        self._budgets = BudgetRepository(store)
        self._transactions = TransactionRepository(store)
        self._members = MembershipRepository(store)

    async def budget_progress(
        self,
        budget_id: UUID,
        actor_id: UUID | None = None,
        today: date | None = None,
    ) -> BudgetProgress:
        """Spend against a budget over ``[start_date, end_date or today]``.

        Only expense transactions count. A budget without a category tracks
        every expense of its group. ``progress_percentage`` is clamped to
        [0, 100]; ``is_over_budget`` compares the raw amounts.

        Args:
            budget_id: The budget to evaluate.
            actor_id: If given, must be a member of the budget's group.
            today: Upper bound for open-ended budgets (defaults to today).

        Raises:
            BudgetNotFoundError: The budget does not exist.
            NotAMemberError: ``actor_id`` is not a member of the group.
        """
        budget = await self._budgets.get(budget_id)
        if budget is None:
            raise BudgetNotFoundError(str(budget_id))
        if actor_id is not None:
            await require_membership(self._members, budget.group_id, actor_id)

        window_end = budget.end_date or today or date.today()
        filters: list[Filter] = [
            Eq("group_id", budget.group_id),
            Eq("type", TransactionType.EXPENSE.value),
            Gte("date", budget.start_date),
            Lte("date", window_end),
        ]
        if budget.category_id is not None:
            filters.append(Eq("category_id", budget.category_id))

        spent = sum((amount for amount, _ in await self._transactions.amounts(filters)), _ZERO)

        if budget.amount > 0:
            percentage = spent / budget.amount * _HUNDRED
        else:
            percentage = _HUNDRED if spent > 0 else _ZERO

        return BudgetProgress(
            budget_id=budget.id,
            budget_amount=budget.amount,
            spent_amount=spent,
            remaining_amount=budget.amount - spent,
            progress_percentage=min(max(percentage, _ZERO), _HUNDRED),
            is_over_budget=spent > budget.amount,
        )

    async def transaction_summary(
        self, group_id: UUID, actor_id: UUID | None = None
    ) -> TransactionSummary:
        """Total income and expenses over the group's whole history.

        There is no date filtering. Any type other than ``income`` counts
        as an expense.
        """
        if actor_id is not None:
            await require_membership(self._members, group_id, actor_id)

        income = _ZERO
        expenses = _ZERO
        for amount, type_ in await self._transactions.amounts([Eq("group_id", group_id)]):
            if type_ == TransactionType.INCOME.value:
                income += amount
            else:
                expenses += amount
        return TransactionSummary(total_income=income, total_expenses=expenses)

"""Shared group transactions, budgets and the figures derived from them."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.profile import UserStub


class TransactionType(StrEnum):
    """Direction of a group transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(StrEnum):
    """Recurrence period of a group budget."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass
class GroupTransaction:
    """Domain entity for a transaction shared within a group."""

    group_id: UUID
    created_by: UUID
    amount: Decimal
    type: TransactionType
    date: date
    id: UUID = field(default_factory=uuid4)
    category_id: UUID | None = None
    description: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    creator: UserStub | None = None


@dataclass
class GroupBudget:
    """Domain entity for a budget shared within a group.

    ``end_date`` of None means the budget is open-ended.
    """

    group_id: UUID
    created_by: UUID
    name: str
    amount: Decimal
    period: BudgetPeriod
    start_date: date
    id: UUID = field(default_factory=uuid4)
    category_id: UUID | None = None
    end_date: date | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    creator: UserStub | None = None


@dataclass(frozen=True)
class BudgetProgress:
    """Spend against a budget.

    ``progress_percentage`` is clamped to [0, 100] for display while
    ``is_over_budget`` compares the unclamped amounts.
    """

    budget_id: UUID
    budget_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal
    progress_percentage: Decimal
    is_over_budget: bool


@dataclass(frozen=True)
class TransactionSummary:
    """Income vs. expense over a group's whole transaction history."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses

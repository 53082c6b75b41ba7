"""Pydantic schemas for group transactions, budgets and aggregates."""

import datetime as dt
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from api.v1.schemas.common import UserSummary
from domain.entities.finance import BudgetPeriod, TransactionType


class TransactionCreate(BaseModel):
    """Schema for recording a group transaction."""

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    type: TransactionType
    date: dt.date
    category_id: UUID | None = None
    description: str | None = Field(None, max_length=500)


class TransactionUpdate(BaseModel):
    """Schema for updating a group transaction.

    Omitted fields are unchanged; an explicit null clears ``category_id`` or
    ``description``.
    """

    amount: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    type: TransactionType | None = None
    date: dt.date | None = None
    category_id: UUID | None = None
    description: str | None = Field(None, max_length=500)


class TransactionResponse(BaseModel):
    """Schema for a group transaction response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    created_by: UUID
    category_id: UUID | None = None
    amount: Decimal
    type: TransactionType
    description: str | None = None
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime
    creator: UserSummary | None = None


class TransactionListResponse(BaseModel):
    data: list[TransactionResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class TransactionDetailResponse(BaseModel):
    data: TransactionResponse


class TransactionSummaryResponse(BaseModel):
    """Income vs. expense over the group's whole history."""

    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal


class BudgetCreate(BaseModel):
    """Schema for creating a group budget."""

    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    period: BudgetPeriod
    start_date: dt.date
    end_date: dt.date | None = None
    category_id: UUID | None = None

    @model_validator(mode="after")
    def check_window(self) -> "BudgetCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetUpdate(BaseModel):
    """Schema for updating a group budget.

    Omitted fields are unchanged; an explicit null clears ``end_date`` or
    ``category_id``.
    """

    name: str | None = Field(None, min_length=1, max_length=100)
    amount: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    period: BudgetPeriod | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    category_id: UUID | None = None

    @model_validator(mode="after")
    def check_window(self) -> "BudgetUpdate":
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.end_date < self.start_date
        ):
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetResponse(BaseModel):
    """Schema for a group budget response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    group_id: UUID
    created_by: UUID
    category_id: UUID | None = None
    name: str
    amount: Decimal
    period: BudgetPeriod
    start_date: dt.date
    end_date: dt.date | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    creator: UserSummary | None = None


class BudgetListResponse(BaseModel):
    data: list[BudgetResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class BudgetDetailResponse(BaseModel):
    data: BudgetResponse


class BudgetProgressResponse(BaseModel):
    """Spend against a budget.

    ``progress_percentage`` is capped at 100; use ``is_over_budget`` to
    tell "exactly spent" from "overspent".
    """

    model_config = ConfigDict(from_attributes=True)

    budget_id: UUID
    budget_amount: Decimal
    spent_amount: Decimal
    remaining_amount: Decimal
    progress_percentage: Decimal
    is_over_budget: bool

"""Group budget API routes."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_aggregation_service, get_budget_service
from api.v1.schemas.finance import (
    BudgetCreate,
    BudgetDetailResponse,
    BudgetListResponse,
    BudgetProgressResponse,
    BudgetResponse,
    BudgetUpdate,
)
from core.rate_limit import limiter
from domain.entities.finance import BudgetPeriod
from domain.services.aggregation_service import AggregationService
from domain.services.group_budget_service import GroupBudgetService

router = APIRouter(
    prefix="/groups/{group_id}/budgets",
    tags=["budgets"],
)


@router.get(
    "",
    response_model=BudgetListResponse,
    summary="List group budgets",
    responses={
        200: {"description": "Budgets ordered by name"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def list_budgets(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    category_id: UUID | None = Query(None),
    period: BudgetPeriod | None = Query(None),
    service: GroupBudgetService = Depends(get_budget_service),
) -> BudgetListResponse:
    """List budgets shared in a group. Requires membership."""
    budgets = await service.list_for_group(
        group_id, user.id, category_id=category_id, period=period
    )
    data = [BudgetResponse.model_validate(b) for b in budgets]
    return BudgetListResponse(data=data, meta={"total": len(data)})


@router.get(
    "/active",
    response_model=BudgetListResponse,
    summary="List active group budgets",
    responses={
        200: {"description": "Budgets whose window contains the given day"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def list_active_budgets(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    on: date | None = Query(None, description="Day to check (defaults to today)"),
    service: GroupBudgetService = Depends(get_budget_service),
) -> BudgetListResponse:
    """List budgets active on a day, open-ended budgets included."""
    budgets = await service.list_active(group_id, user.id, today=on)
    data = [BudgetResponse.model_validate(b) for b in budgets]
    return BudgetListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=BudgetDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group budget",
    responses={
        201: {"description": "Budget created"},
        403: {"description": "Viewers cannot create budgets"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def create_budget(
    request: Request,
    group_id: UUID,
    body: BudgetCreate,
    user: CurrentUser,
    service: GroupBudgetService = Depends(get_budget_service),
) -> BudgetDetailResponse:
    """Create a budget in the group. Requires member role or above."""
    budget = await service.create(
        group_id,
        user.id,
        name=body.name,
        amount=body.amount,
        period=body.period,
        start_date=body.start_date,
        end_date=body.end_date,
        category_id=body.category_id,
    )
    return BudgetDetailResponse(data=BudgetResponse.model_validate(budget))


@router.get(
    "/{budget_id}",
    response_model=BudgetDetailResponse,
    summary="Get a group budget",
    responses={404: {"description": "Budget not found"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_budget(
    request: Request,
    group_id: UUID,
    budget_id: UUID,
    user: CurrentUser,
    service: GroupBudgetService = Depends(get_budget_service),
) -> BudgetDetailResponse:
    budget = await service.get(group_id, budget_id, user.id)
    return BudgetDetailResponse(data=BudgetResponse.model_validate(budget))


@router.get(
    "/{budget_id}/progress",
    response_model=BudgetProgressResponse,
    summary="Budget progress",
    responses={
        200: {"description": "Spend against the budget"},
        404: {"description": "Budget not found or caller is not a member"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_budget_progress(
    request: Request,
    group_id: UUID,
    budget_id: UUID,
    user: CurrentUser,
    budgets: GroupBudgetService = Depends(get_budget_service),
    service: AggregationService = Depends(get_aggregation_service),
) -> BudgetProgressResponse:
    """Expense total within the budget's window compared to its amount."""
    await budgets.get(group_id, budget_id, user.id)
    progress = await service.budget_progress(budget_id, actor_id=user.id)
    return BudgetProgressResponse.model_validate(progress)


@router.patch(
    "/{budget_id}",
    response_model=BudgetDetailResponse,
    summary="Update a group budget",
    responses={
        200: {"description": "Budget updated"},
        403: {"description": "Only owners, admins or the creator may edit"},
        404: {"description": "Budget not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def update_budget(
    request: Request,
    group_id: UUID,
    budget_id: UUID,
    body: BudgetUpdate,
    user: CurrentUser,
    service: GroupBudgetService = Depends(get_budget_service),
) -> BudgetDetailResponse:
    budget = await service.update(
        group_id, budget_id, user.id, **body.model_dump(exclude_unset=True)
    )
    return BudgetDetailResponse(data=BudgetResponse.model_validate(budget))


@router.delete(
    "/{budget_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group budget",
    responses={
        204: {"description": "Budget deleted"},
        403: {"description": "Only owners, admins or the creator may delete"},
        404: {"description": "Budget not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def delete_budget(
    request: Request,
    group_id: UUID,
    budget_id: UUID,
    user: CurrentUser,
    service: GroupBudgetService = Depends(get_budget_service),
) -> None:
    await service.delete(group_id, budget_id, user.id)
    return None

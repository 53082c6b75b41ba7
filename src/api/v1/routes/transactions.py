"""Group transaction API routes."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_aggregation_service, get_transaction_service
from api.v1.schemas.finance import (
    TransactionCreate,
    TransactionDetailResponse,
    TransactionListResponse,
    TransactionResponse,
    TransactionSummaryResponse,
    TransactionUpdate,
)
from core.rate_limit import limiter
from domain.entities.finance import TransactionType
from domain.services.aggregation_service import AggregationService
from domain.services.group_transaction_service import GroupTransactionService

router = APIRouter(
    prefix="/groups/{group_id}/transactions",
    tags=["transactions"],
)


@router.get(
    "",
    response_model=TransactionListResponse,
    summary="List group transactions",
    responses={
        200: {"description": "Transactions, newest date first"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def list_transactions(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    start_date: date | None = Query(None, description="Inclusive lower date bound"),
    end_date: date | None = Query(None, description="Inclusive upper date bound"),
    category_id: UUID | None = Query(None),
    type: TransactionType | None = Query(None),
    created_by: UUID | None = Query(None),
    service: GroupTransactionService = Depends(get_transaction_service),
) -> TransactionListResponse:
    """List transactions shared in a group. Requires membership."""
    transactions = await service.list_for_group(
        group_id,
        user.id,
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        type=type,
        created_by=created_by,
    )
    data = [TransactionResponse.model_validate(t) for t in transactions]
    return TransactionListResponse(data=data, meta={"total": len(data)})


@router.get(
    "/summary",
    response_model=TransactionSummaryResponse,
    summary="Income vs. expense summary",
    responses={
        200: {"description": "Totals over the group's whole history"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_transaction_summary(
    request: Request,
    group_id: UUID,
    user: CurrentUser,
    service: AggregationService = Depends(get_aggregation_service),
) -> TransactionSummaryResponse:
    """Summarize all group transactions. Requires membership."""
    summary = await service.transaction_summary(group_id, actor_id=user.id)
    return TransactionSummaryResponse(
        total_income=summary.total_income,
        total_expenses=summary.total_expenses,
        balance=summary.balance,
    )


@router.post(
    "",
    response_model=TransactionDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a group transaction",
    responses={
        201: {"description": "Transaction created"},
        403: {"description": "Viewers cannot create transactions"},
        404: {"description": "Group not found or caller is not a member"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def create_transaction(
    request: Request,
    group_id: UUID,
    body: TransactionCreate,
    user: CurrentUser,
    service: GroupTransactionService = Depends(get_transaction_service),
) -> TransactionDetailResponse:
    """Record a transaction in the group. Requires member role or above."""
    transaction = await service.create(
        group_id,
        user.id,
        amount=body.amount,
        type=body.type,
        date=body.date,
        category_id=body.category_id,
        description=body.description,
    )
    return TransactionDetailResponse(data=TransactionResponse.model_validate(transaction))


@router.get(
    "/{transaction_id}",
    response_model=TransactionDetailResponse,
    summary="Get a group transaction",
    responses={404: {"description": "Transaction not found"}},
)
@limiter.limit("60/minute")  # type: ignore[untyped-decorator]
async def get_transaction(
    request: Request,
    group_id: UUID,
    transaction_id: UUID,
    user: CurrentUser,
    service: GroupTransactionService = Depends(get_transaction_service),
) -> TransactionDetailResponse:
    transaction = await service.get(group_id, transaction_id, user.id)
    return TransactionDetailResponse(data=TransactionResponse.model_validate(transaction))


@router.patch(
    "/{transaction_id}",
    response_model=TransactionDetailResponse,
    summary="Update a group transaction",
    responses={
        200: {"description": "Transaction updated"},
        403: {"description": "Only owners, admins or the creator may edit"},
        404: {"description": "Transaction not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def update_transaction(
    request: Request,
    group_id: UUID,
    transaction_id: UUID,
    body: TransactionUpdate,
    user: CurrentUser,
    service: GroupTransactionService = Depends(get_transaction_service),
) -> TransactionDetailResponse:
    transaction = await service.update(
        group_id, transaction_id, user.id, **body.model_dump(exclude_unset=True)
    )
    return TransactionDetailResponse(data=TransactionResponse.model_validate(transaction))


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group transaction",
    responses={
        204: {"description": "Transaction deleted"},
        403: {"description": "Only owners, admins or the creator may delete"},
        404: {"description": "Transaction not found"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def delete_transaction(
    request: Request,
    group_id: UUID,
    transaction_id: UUID,
    user: CurrentUser,
    service: GroupTransactionService = Depends(get_transaction_service),
) -> None:
    await service.delete(group_id, transaction_id, user.id)
    return None

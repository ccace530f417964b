# minty/api/v1/routes/budgets.py
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from minty.api.deps import get_current_user, get_notification_service
from minty.core.auth import User
from minty.core.database import get_async_session
from minty.crud.budget import create_budget_for_user, get_budget_by_id, get_budgets_for_user, update_budget
from minty.schemas.budget import BudgetCreate, BudgetLinkedCount, BudgetRead, BudgetUpdate, BudgetUtilization
from minty.utils.aggregation import summarize_budget
from minty.utils.ledger import (
    LedgerError,
    count_linked_transactions,
    delete_budget_with_unlink,
    recalculate_budget_spent,
)
from minty.utils.notifications import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budgets", tags=["budgets"])


def _budget_record(budget) -> dict:
    return BudgetRead.model_validate(budget).model_dump(mode="json")


@router.get("", response_model=List[BudgetRead])
async def read_budgets(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_budgets_for_user(user.id, db)


@router.get("/utilization", response_model=List[BudgetUtilization])
async def read_budget_utilization(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Spent, remaining and status for every budget."""
    budgets = await get_budgets_for_user(user.id, db)
    return [summarize_budget(b) for b in budgets]


@router.post("", response_model=BudgetRead, status_code=status.HTTP_201_CREATED)
async def create_budget(
    budget_in: BudgetCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    notifier: NotificationService = Depends(get_notification_service),
):
    budget = await create_budget_for_user(user.id, budget_in, db)
    await notifier.publish_change(user.id, "budgets", "INSERT", _budget_record(budget))
    return budget


@router.get("/{budget_id}", response_model=BudgetRead)
async def read_budget(
    budget_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    budget = await get_budget_by_id(budget_id, user.id, db)
    if not budget:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return budget


@router.get("/{budget_id}/linked-count", response_model=BudgetLinkedCount)
async def read_linked_count(
    budget_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    budget = await get_budget_by_id(budget_id, user.id, db)
    if not budget:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Budget not found")
    count = await count_linked_transactions(db, budget.id, user.id)
    return BudgetLinkedCount(budget_id=budget.id, linked_transactions=count)


@router.patch("/{budget_id}", response_model=BudgetRead)
async def update_budget_endpoint(
    budget_id: uuid.UUID,
    budget_in: BudgetUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    notifier: NotificationService = Depends(get_notification_service),
):
    budget = await get_budget_by_id(budget_id, user.id, db)
    if not budget:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Budget not found")

    start_date = budget_in.start_date or budget.start_date
    end_date = budget_in.end_date or budget.end_date
    if end_date <= start_date:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="end_date must be after start_date")

    budget = await update_budget(budget, budget_in, db)
    await notifier.publish_change(user.id, "budgets", "UPDATE", _budget_record(budget))
    # A lower total can push an existing budget over the alert threshold
    await notifier.handle_budget_update(db, budget)
    return budget


@router.post("/{budget_id}/reconcile", response_model=BudgetRead)
async def reconcile_budget(
    budget_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Recompute spent_amount from the expense transactions currently linked to the budget."""
    budget = await get_budget_by_id(budget_id, user.id, db)
    if not budget:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Budget not found")
    await recalculate_budget_spent(db, budget)
    await notifier.publish_change(user.id, "budgets", "UPDATE", _budget_record(budget))
    return budget


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget_endpoint(
    budget_id: uuid.UUID,
    confirm: bool = Query(False, description="Unlink linked transactions and delete anyway"),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    notifier: NotificationService = Depends(get_notification_service),
):
    budget = await get_budget_by_id(budget_id, user.id, db)
    if not budget:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Budget not found")

    linked = await count_linked_transactions(db, budget.id, user.id)
    if linked and not confirm:
        raise HTTPException(
            status.HTTP_409_CONFLICT,
            detail={
                "message": f"This budget has {linked} linked transaction(s). "
                           "Deleting it will unlink them. Pass confirm=true to proceed.",
                "linked_transactions": linked,
            },
        )

    record = _budget_record(budget)
    try:
        await delete_budget_with_unlink(db, budget)
    except LedgerError as e:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    await notifier.publish_change(user.id, "budgets", "DELETE", record)
    if linked:
        await notifier.publish_change(user.id, "transactions", "UPDATE", {"budget_id": record["id"], "unlinked": linked})
    return None

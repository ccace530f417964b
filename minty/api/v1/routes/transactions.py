# minty/api/v1/routes/transactions.py
import logging
import uuid
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from minty.api.deps import get_current_user, get_notification_service
from minty.core.auth import User
from minty.core.database import get_async_session
from minty.crud.budget import get_budget_by_id
from minty.crud.category import get_category_by_id
from minty.crud.transaction import (
    create_transaction_for_user,
    delete_transaction,
    get_transaction_by_id,
    get_transactions_for_user,
    update_transaction,
)
from minty.schemas.budget import BudgetRead
from minty.schemas.transaction import TransactionCreate, TransactionRead, TransactionUpdate
from minty.utils.ledger import LedgerError, ledger_entry, reconcile_transaction_change
from minty.utils.notifications import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])

# Set when the transaction was saved but its budget totals could not be updated
LEDGER_STATUS_HEADER = "X-Ledger-Status"


async def _validate_references(
    db: AsyncSession,
    user_id: uuid.UUID,
    category_id: Optional[uuid.UUID],
    budget_id: Optional[uuid.UUID],
) -> None:
    if category_id is not None and not await get_category_by_id(category_id, user_id, db):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Invalid category_id")
    if budget_id is not None and not await get_budget_by_id(budget_id, user_id, db):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Invalid budget_id")


async def _reconcile(
    db: AsyncSession,
    user_id: uuid.UUID,
    old,
    new,
    response: Response,
    notifier: NotificationService,
) -> Dict[uuid.UUID, float]:
    """Update linked budget totals; a failure leaves the transaction saved and marks the response stale."""
    try:
        moved = await reconcile_transaction_change(db, user_id, old, new)
    except LedgerError as e:
        logger.warning(f"Budget reconciliation failed for user {user_id}: {str(e)}")
        response.headers[LEDGER_STATUS_HEADER] = "stale"
        return {}

    for budget_id in moved:
        budget = await get_budget_by_id(budget_id, user_id, db)
        if budget is None:
            continue
        await notifier.publish_change(
            user_id, "budgets", "UPDATE", BudgetRead.model_validate(budget).model_dump(mode="json")
        )
        await notifier.handle_budget_update(db, budget)
    return moved


@router.get("", response_model=List[TransactionRead])
async def read_transactions(
    start_date: Optional[date] = Query(None, description="Earliest transaction_date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest transaction_date (exclusive)"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_transactions_for_user(user.id, db, start_date=start_date, end_date=end_date, limit=limit)


@router.post("", response_model=TransactionRead, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    tx_in: TransactionCreate,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    notifier: NotificationService = Depends(get_notification_service),
):
    await _validate_references(db, user.id, tx_in.category_id, tx_in.budget_id)
    tx = await create_transaction_for_user(user.id, tx_in, db)
    record = TransactionRead.model_validate(tx).model_dump(mode="json")

    await _reconcile(db, user.id, None, ledger_entry(tx), response, notifier)
    await notifier.publish_change(user.id, "transactions", "INSERT", record)
    return record


@router.get("/{transaction_id}", response_model=TransactionRead)
async def read_transaction(
    transaction_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    tx = await get_transaction_by_id(transaction_id, user.id, db)
    if not tx:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")
    return tx


@router.patch("/{transaction_id}", response_model=TransactionRead)
async def update_transaction_endpoint(
    transaction_id: uuid.UUID,
    tx_in: TransactionUpdate,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    notifier: NotificationService = Depends(get_notification_service),
):
    tx = await get_transaction_by_id(transaction_id, user.id, db)
    if not tx:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    changes = tx_in.model_dump(exclude_unset=True)
    await _validate_references(db, user.id, changes.get("category_id"), changes.get("budget_id"))

    old = ledger_entry(tx)
    tx = await update_transaction(tx, tx_in, db)
    record = TransactionRead.model_validate(tx).model_dump(mode="json")

    await _reconcile(db, user.id, old, ledger_entry(tx), response, notifier)
    await notifier.publish_change(user.id, "transactions", "UPDATE", record)
    return record


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction_endpoint(
    transaction_id: uuid.UUID,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    notifier: NotificationService = Depends(get_notification_service),
):
    tx = await get_transaction_by_id(transaction_id, user.id, db)
    if not tx:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    old = ledger_entry(tx)
    record = TransactionRead.model_validate(tx).model_dump(mode="json")
    await delete_transaction(tx, db)

    await _reconcile(db, user.id, old, None, response, notifier)
    await notifier.publish_change(user.id, "transactions", "DELETE", record)
    response.status_code = status.HTTP_204_NO_CONTENT
    return None

"""
Keeps Budget.spent_amount in step with the expense transactions linked to it.

Every transaction mutation is reduced to a before/after ledger entry. The
difference between the two becomes a set of per-budget deltas, and each delta
is applied as a single store-side increment so concurrent writes against the
same budget never overwrite each other.
"""
import logging
import uuid
from typing import Dict, NamedTuple, Optional

from sqlalchemy import Numeric, cast, update, select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from minty.core.db_utils import with_db_retry
from minty.models.budget import Budget
from minty.models.transaction import Transaction, TransactionType

logger = logging.getLogger(__name__)

# Budget totals are kept in whole cents
CENT_PLACES = 2


class LedgerError(Exception):
    """A budget aggregate could not be brought up to date."""


class LedgerEntry(NamedTuple):
    type: TransactionType
    amount: float
    budget_id: Optional[uuid.UUID]


def ledger_entry(tx) -> LedgerEntry:
    """Snapshot the fields of a transaction that affect budget totals."""
    return LedgerEntry(
        type=TransactionType(tx.type),
        amount=float(tx.amount or 0.0),
        budget_id=tx.budget_id,
    )


def compute_budget_deltas(
    old: Optional[LedgerEntry],
    new: Optional[LedgerEntry],
) -> Dict[uuid.UUID, float]:
    """
    Per-budget change in spent_amount caused by replacing ``old`` with ``new``.

    ``old=None`` is a create, ``new=None`` a delete. Only linked expenses count.
    Budgets whose net change is zero are left out.
    """
    deltas: Dict[uuid.UUID, float] = {}

    if old is not None and old.budget_id is not None and old.type == TransactionType.expense:
        deltas[old.budget_id] = deltas.get(old.budget_id, 0.0) - abs(old.amount)

    if new is not None and new.budget_id is not None and new.type == TransactionType.expense:
        deltas[new.budget_id] = deltas.get(new.budget_id, 0.0) + abs(new.amount)

    rounded = {budget_id: round(delta, CENT_PLACES) for budget_id, delta in deltas.items()}
    return {budget_id: delta for budget_id, delta in rounded.items() if delta != 0}


@with_db_retry(max_retries=3, retry_delay=0.5)
async def _increment_spent(db: AsyncSession, user_id: uuid.UUID, deltas: Dict[uuid.UUID, float]) -> Dict[uuid.UUID, bool]:
    applied: Dict[uuid.UUID, bool] = {}
    try:
        for budget_id, delta in deltas.items():
            result = await db.execute(
                update(Budget)
                .where(Budget.id == budget_id, Budget.user_id == user_id)
                .values(spent_amount=func.round(cast(Budget.spent_amount + delta, Numeric), CENT_PLACES))
                .execution_options(synchronize_session=False)
            )
            applied[budget_id] = bool(result.rowcount)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return applied


async def apply_budget_deltas(db: AsyncSession, user_id: uuid.UUID, deltas: Dict[uuid.UUID, float]) -> Dict[uuid.UUID, bool]:
    """
    Apply each delta as ``spent_amount = spent_amount + delta`` for the owner's budget.

    Returns ``{budget_id: applied}``; a budget that no longer exists is logged and skipped.
    Raises LedgerError when the store rejects the update.
    """
    if not deltas:
        return {}

    try:
        applied = await _increment_spent(db, user_id, deltas)
    except SQLAlchemyError as e:
        logger.error(f"Failed to update budget totals for user {user_id}: {str(e)}")
        raise LedgerError(f"Budget totals could not be updated: {str(e)}") from e

    for budget_id, ok in applied.items():
        if ok:
            logger.info(f"Budget {budget_id} spent_amount adjusted by {deltas[budget_id]:+.2f}")
        else:
            logger.warning(f"Budget {budget_id} not found for user {user_id}; skipped delta {deltas[budget_id]:+.2f}")
    return applied


async def reconcile_transaction_change(
    db: AsyncSession,
    user_id: uuid.UUID,
    old: Optional[LedgerEntry],
    new: Optional[LedgerEntry],
) -> Dict[uuid.UUID, float]:
    """Bring linked budgets up to date after a transaction create/update/delete.

    Returns the deltas that were applied so callers know which budgets moved.
    """
    deltas = compute_budget_deltas(old, new)
    applied = await apply_budget_deltas(db, user_id, deltas)
    return {budget_id: deltas[budget_id] for budget_id, ok in applied.items() if ok}


async def count_linked_transactions(db: AsyncSession, budget_id: uuid.UUID, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.budget_id == budget_id, Transaction.user_id == user_id)
    )
    return result.scalar_one() or 0


async def delete_budget_with_unlink(db: AsyncSession, budget: Budget) -> int:
    """Detach every transaction of the budget's owner from it, then delete the budget.

    Both statements commit together. Returns how many transactions were unlinked.
    """
    try:
        result = await db.execute(
            update(Transaction)
            .where(Transaction.budget_id == budget.id, Transaction.user_id == budget.user_id)
            .values(budget_id=None)
            .execution_options(synchronize_session=False)
        )
        unlinked = result.rowcount or 0
        await db.execute(
            delete(Budget)
            .where(Budget.id == budget.id, Budget.user_id == budget.user_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to delete budget {budget.id}: {str(e)}")
        raise LedgerError(f"Budget could not be deleted: {str(e)}") from e

    logger.info(f"Deleted budget {budget.id} and unlinked {unlinked} transactions")
    return unlinked


async def recalculate_budget_spent(db: AsyncSession, budget: Budget) -> float:
    """Recompute spent_amount from the linked expense transactions currently in the store."""
    result = await db.execute(
        select(func.coalesce(func.sum(func.abs(Transaction.amount)), 0.0)).where(
            Transaction.budget_id == budget.id,
            Transaction.user_id == budget.user_id,
            Transaction.type == TransactionType.expense,
        )
    )
    spent = round(float(result.scalar_one() or 0.0), CENT_PLACES)
    if spent != float(budget.spent_amount or 0.0):
        logger.warning(f"Budget {budget.id} spent_amount drifted ({budget.spent_amount} -> {spent}); correcting")
    budget.spent_amount = spent
    db.add(budget)
    await db.commit()
    await db.refresh(budget)
    return spent

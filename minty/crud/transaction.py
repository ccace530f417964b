# minty/crud/transaction.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import desc, func
from minty.models.transaction import Transaction, TransactionType
from typing import List, Optional
from datetime import date
import uuid
from minty.schemas.transaction import TransactionCreate, TransactionUpdate


def signed_amount(amount: float, tx_type: TransactionType) -> float:
    """Expenses are stored negative, income positive, whatever sign the client sent."""
    magnitude = abs(float(amount))
    return -magnitude if TransactionType(tx_type) == TransactionType.expense else magnitude


def join_tags(tags: Optional[List[str]]) -> Optional[str]:
    return ",".join(tags) if tags else None


async def get_transactions_for_user(
    user_id: uuid.UUID,
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = None,
) -> List[Transaction]:
    """Transactions newest first, optionally bounded to [start_date, end_date)."""
    query = select(Transaction).where(Transaction.user_id == user_id)
    if start_date is not None:
        query = query.where(Transaction.transaction_date >= start_date)
    if end_date is not None:
        query = query.where(Transaction.transaction_date < end_date)
    query = query.order_by(desc(Transaction.transaction_date), desc(Transaction.created_at))
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return result.scalars().all()

async def get_transaction_by_id(transaction_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Transaction]:
    result = await db.execute(
        select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def count_transactions_since(user_id: uuid.UUID, since: date, db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Transaction)
        .where(Transaction.user_id == user_id, Transaction.transaction_date >= since)
    )
    return result.scalar_one() or 0

async def create_transaction_for_user(user_id: uuid.UUID, tx_in: TransactionCreate, db: AsyncSession) -> Transaction:
    data = tx_in.model_dump()
    data["amount"] = signed_amount(data["amount"], data["type"])
    data["tags"] = join_tags(data["tags"])
    new_tx = Transaction(**data, user_id=user_id)
    db.add(new_tx)
    await db.commit()
    await db.refresh(new_tx)
    return new_tx

async def update_transaction(tx: Transaction, tx_in: TransactionUpdate, db: AsyncSession) -> Transaction:
    updates = tx_in.model_dump(exclude_unset=True)
    for field, value in updates.items():
        if field == "tags":
            tx.tags = join_tags(value)
        elif field == "budget_id":
            # An explicit null unlinks the transaction from its budget
            tx.budget_id = value
        elif value is not None:
            setattr(tx, field, value)
    # Re-derive the sign in case either the amount or the type changed
    tx.amount = signed_amount(tx.amount, tx.type)
    db.add(tx)
    await db.commit()
    await db.refresh(tx)
    return tx

async def delete_transaction(tx: Transaction, db: AsyncSession) -> None:
    await db.delete(tx)
    await db.commit()

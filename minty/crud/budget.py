# minty/crud/budget.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import desc
from minty.models.budget import Budget
from typing import List, Optional
import uuid
from minty.schemas.budget import BudgetCreate, BudgetUpdate

async def get_budgets_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Budget]:
    result = await db.execute(
        select(Budget).where(Budget.user_id == user_id).order_by(desc(Budget.created_at))
    )
    return result.scalars().all()

async def get_budget_by_id(budget_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Budget]:
    result = await db.execute(
        select(Budget)
        .where(Budget.id == budget_id, Budget.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()

async def create_budget_for_user(user_id: uuid.UUID, budget_in: BudgetCreate, db: AsyncSession) -> Budget:
    data = budget_in.model_dump()
    data["name"] = data["name"].strip()
    # Always starts at zero; the ledger maintains it from here on
    new_budget = Budget(**data, user_id=user_id, spent_amount=0.0)
    db.add(new_budget)
    await db.commit()
    await db.refresh(new_budget)
    return new_budget

async def update_budget(budget: Budget, budget_in: BudgetUpdate, db: AsyncSession) -> Budget:
    for field, value in budget_in.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(budget, field, value)
    db.add(budget)
    await db.commit()
    await db.refresh(budget)
    return budget

# minty/api/v1/routes/categories.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from datetime import date
import uuid

from minty.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate, CategoryStats
from minty.crud.category import (
    create_category_for_user,
    get_categories_for_user,
    get_category_by_id,
    get_category_by_name_for_user,
    update_category,
    delete_category,
)
from minty.crud.transaction import get_transactions_for_user
from minty.core.database import get_async_session
from minty.core.auth import User
from minty.api.deps import get_current_user
from minty.utils.aggregation import category_month_stats

router = APIRouter(prefix="/categories", tags=["categories"])

@router.get("", response_model=List[CategoryRead])
async def read_categories(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_categories_for_user(user.id, db)

@router.get("/stats", response_model=List[CategoryStats])
async def read_category_stats(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Transaction count, total and limit status for each category this month."""
    today = date.today()
    categories = await get_categories_for_user(user.id, db)
    transactions = await get_transactions_for_user(user.id, db, start_date=today.replace(day=1))
    return category_month_stats(categories, transactions, today.year, today.month)

@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    cat_in: CategoryCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    if await get_category_by_name_for_user(cat_in.name.strip(), user.id, db):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="A category with this name already exists")
    return await create_category_for_user(user.id, cat_in, db)

@router.get("/{category_id}", response_model=CategoryRead)
async def read_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    category = await get_category_by_id(category_id, user.id, db)
    if not category:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category

@router.patch("/{category_id}", response_model=CategoryRead)
async def update_category_endpoint(
    category_id: uuid.UUID,
    cat_in: CategoryUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    category = await get_category_by_id(category_id, user.id, db)
    if not category:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Category not found")
    return await update_category(category, cat_in, db)

@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category_endpoint(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    category = await get_category_by_id(category_id, user.id, db)
    if not category:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Category not found")
    await delete_category(category, db)
    return None

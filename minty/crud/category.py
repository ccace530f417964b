# minty/crud/category.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from minty.models.category import Category, CategoryType
from typing import List, Optional
import uuid
from minty.schemas.category import CategoryCreate, CategoryUpdate

async def get_categories_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Category]:
    result = await db.execute(
        select(Category).where(Category.user_id == user_id).order_by(Category.name)
    )
    return result.scalars().all()

async def get_category_by_id(category_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Category]:
    result = await db.execute(
        select(Category).where(Category.id == category_id, Category.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def get_category_by_name_for_user(name: str, user_id: uuid.UUID, db: AsyncSession) -> Optional[Category]:
    """Case-insensitive lookup of a category by name for a given user."""
    result = await db.execute(
        select(Category).where(
            Category.user_id == user_id,
            func.lower(Category.name) == func.lower(name),
        )
    )
    return result.scalars().first()

async def create_category_for_user(user_id: uuid.UUID, cat_in: CategoryCreate, db: AsyncSession) -> Category:
    new_cat = Category(**cat_in.model_dump(), user_id=user_id)
    new_cat.name = new_cat.name.strip()
    db.add(new_cat)
    await db.commit()
    await db.refresh(new_cat)
    return new_cat

async def update_category(category: Category, cat_in: CategoryUpdate, db: AsyncSession) -> Category:
    for field, value in cat_in.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(category, field, value)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category

async def delete_category(category: Category, db: AsyncSession) -> None:
    # Transactions keep their (now dangling) category_id and display as "Uncategorized"
    await db.delete(category)
    await db.commit()


# Default categories created for every new user
DEFAULT_CATEGORIES: List[dict] = [
    {"name": "Salary", "type": CategoryType.income, "color": "#22c55e"},
    {"name": "Food & Dining", "type": CategoryType.expense, "color": "#ff7300"},
    {"name": "Transportation", "type": CategoryType.expense, "color": "#06b6d4"},
    {"name": "Shopping", "type": CategoryType.expense, "color": "#8b5cf6"},
    {"name": "Bills & Utilities", "type": CategoryType.expense, "color": "#ef4444"},
    {"name": "Entertainment", "type": CategoryType.expense, "color": "#eab308"},
]

async def seed_default_categories_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Category]:
    """Ensure the user has the default categories; create missing ones.

    Returns the list of categories that were created (empty if none were needed).
    """
    result = await db.execute(select(Category.name).where(Category.user_id == user_id))
    existing_names_lower = {row[0].lower() for row in result.all()}

    categories_to_create: List[Category] = []
    for cat in DEFAULT_CATEGORIES:
        if cat["name"].lower() not in existing_names_lower:
            categories_to_create.append(
                Category(
                    user_id=user_id,
                    name=cat["name"],
                    type=cat["type"],
                    color=cat["color"],
                )
            )

    if categories_to_create:
        db.add_all(categories_to_create)
        await db.commit()
        for c in categories_to_create:
            await db.refresh(c)

    return categories_to_create

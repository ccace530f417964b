import os
import tempfile
import uuid
from datetime import date

# Settings are read at import time, so the environment must be ready first
_DB_DIR = tempfile.mkdtemp(prefix="minty-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'minty-test.db')}"
os.environ["SECRET_KEY"] = "minty-test-secret"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["NOTIFICATION_MIN_INTERVAL_SECONDS"] = "0"
os.environ["ENABLE_SCHEDULER"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient

from minty.main import app
from minty.api.deps import get_current_user
from minty.core.auth import User
from minty.core.database import AsyncSessionLocal, Base, engine
from minty.models.budget import Budget, BudgetType
from minty.models.category import Category, CategoryType
from minty.models.transaction import Transaction, TransactionType


@pytest.fixture
async def db_setup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest.fixture
async def db(db_setup):
    async with AsyncSessionLocal() as session:
        yield session


async def _create_user(db, email=None):
    user = User(
        email=email or f"{uuid.uuid4().hex[:8]}@example.com",
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=False,
        is_verified=True,
        full_name="Test User",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def user(db):
    return await _create_user(db)


@pytest.fixture
async def other_user(db):
    return await _create_user(db)


@pytest.fixture
def make_category(db):
    async def factory(user_id, name="Food", type=CategoryType.expense, **kwargs):
        category = Category(user_id=user_id, name=name, type=type, **kwargs)
        db.add(category)
        await db.commit()
        await db.refresh(category)
        return category
    return factory


@pytest.fixture
def make_budget(db):
    async def factory(user_id, name="Groceries", total_amount=100.0, **kwargs):
        kwargs.setdefault("start_date", date(2020, 1, 1))
        kwargs.setdefault("end_date", date(2099, 12, 31))
        budget = Budget(
            user_id=user_id,
            name=name,
            type=kwargs.pop("type", BudgetType.monthly),
            total_amount=total_amount,
            spent_amount=kwargs.pop("spent_amount", 0.0),
            **kwargs,
        )
        db.add(budget)
        await db.commit()
        await db.refresh(budget)
        return budget
    return factory


@pytest.fixture
def make_transaction(db):
    async def factory(user_id, amount, type=TransactionType.expense, **kwargs):
        kwargs.setdefault("description", "Test transaction")
        kwargs.setdefault("transaction_date", date.today())
        tx = Transaction(user_id=user_id, amount=amount, type=type, **kwargs)
        db.add(tx)
        await db.commit()
        await db.refresh(tx)
        return tx
    return factory


@pytest.fixture
async def client(user):
    app.dependency_overrides[get_current_user] = lambda: user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def anon_client(db_setup):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

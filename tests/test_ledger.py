import uuid

import pytest
from sqlalchemy import select

from minty.crud.budget import get_budget_by_id
from minty.crud.transaction import create_transaction_for_user, delete_transaction, update_transaction
from minty.models.transaction import Transaction, TransactionType
from minty.schemas.transaction import TransactionCreate, TransactionUpdate
from minty.utils.ledger import (
    LedgerEntry,
    apply_budget_deltas,
    compute_budget_deltas,
    count_linked_transactions,
    delete_budget_with_unlink,
    ledger_entry,
    recalculate_budget_spent,
    reconcile_transaction_change,
)


B1 = uuid.uuid4()
B2 = uuid.uuid4()


def expense(amount, budget_id=B1):
    return LedgerEntry(TransactionType.expense, -abs(amount), budget_id)


def income(amount, budget_id=B1):
    return LedgerEntry(TransactionType.income, abs(amount), budget_id)


class TestComputeBudgetDeltas:
    def test_create_linked_expense_adds_magnitude(self):
        assert compute_budget_deltas(None, expense(50)) == {B1: 50}

    def test_delete_linked_expense_subtracts_magnitude(self):
        assert compute_budget_deltas(expense(50), None) == {B1: -50}

    def test_amount_change_on_same_budget_is_signed_difference(self):
        assert compute_budget_deltas(expense(50), expense(70)) == {B1: 20}
        assert compute_budget_deltas(expense(50), expense(20)) == {B1: -30}

    def test_moving_between_budgets(self):
        assert compute_budget_deltas(expense(50, B1), expense(50, B2)) == {B1: -50, B2: 50}

    def test_unlinking_from_budget(self):
        assert compute_budget_deltas(expense(40, B1), expense(40, None)) == {B1: -40}

    def test_type_flip_to_income_removes_contribution(self):
        assert compute_budget_deltas(expense(50), income(50)) == {B1: -50}

    def test_type_flip_to_expense_adds_contribution(self):
        assert compute_budget_deltas(income(50), expense(50)) == {B1: 50}

    def test_income_and_unlinked_are_ignored(self):
        assert compute_budget_deltas(None, income(500)) == {}
        assert compute_budget_deltas(None, expense(20, None)) == {}

    def test_unchanged_entry_yields_no_delta(self):
        assert compute_budget_deltas(expense(50), expense(50)) == {}

    def test_fractional_amounts_that_cancel_leave_no_delta(self):
        assert compute_budget_deltas(expense(0.1 + 0.2), expense(0.3)) == {}
        assert compute_budget_deltas(expense(0.1), expense(0.3)) == {B1: 0.2}


async def test_scenario_two_expenses_then_delete(db, user, make_budget):
    budget = await make_budget(user.id, total_amount=100)

    first = await create_transaction_for_user(user.id, TransactionCreate(
        description="Groceries", amount=50, type="expense", category_id=uuid.uuid4(),
        budget_id=budget.id, transaction_date="2025-08-01",
    ), db)
    await reconcile_transaction_change(db, user.id, None, ledger_entry(first))

    second = await create_transaction_for_user(user.id, TransactionCreate(
        description="Snacks", amount=-30, type="expense", category_id=uuid.uuid4(),
        budget_id=budget.id, transaction_date="2025-08-02",
    ), db)
    await reconcile_transaction_change(db, user.id, None, ledger_entry(second))

    assert first.amount == -50
    assert second.amount == -30
    budget = await get_budget_by_id(budget.id, user.id, db)
    assert budget.spent_amount == pytest.approx(80)

    old = ledger_entry(first)
    await delete_transaction(first, db)
    await reconcile_transaction_change(db, user.id, old, None)

    budget = await get_budget_by_id(budget.id, user.id, db)
    assert budget.spent_amount == pytest.approx(30)


async def test_cent_amounts_return_budget_to_exactly_zero(db, user, make_budget):
    budget = await make_budget(user.id, total_amount=10)
    created = []
    for amount in (0.1, 0.2):
        tx = await create_transaction_for_user(user.id, TransactionCreate(
            description="Coffee", amount=amount, type="expense", category_id=uuid.uuid4(),
            budget_id=budget.id, transaction_date="2025-08-03",
        ), db)
        await reconcile_transaction_change(db, user.id, None, ledger_entry(tx))
        created.append(tx)

    budget = await get_budget_by_id(budget.id, user.id, db)
    assert budget.spent_amount == 0.3

    for tx in created:
        old = ledger_entry(tx)
        await delete_transaction(tx, db)
        await reconcile_transaction_change(db, user.id, old, None)

    budget = await get_budget_by_id(budget.id, user.id, db)
    assert budget.spent_amount == 0.0


async def test_sequence_keeps_spent_equal_to_linked_expenses(db, user, make_budget):
    b1 = await make_budget(user.id, name="B1", total_amount=500)
    b2 = await make_budget(user.id, name="B2", total_amount=500)
    category_id = uuid.uuid4()

    async def create(amount, tx_type="expense", budget_id=None):
        tx = await create_transaction_for_user(user.id, TransactionCreate(
            description="tx", amount=amount, type=tx_type, category_id=category_id,
            budget_id=budget_id, transaction_date="2025-08-10",
        ), db)
        await reconcile_transaction_change(db, user.id, None, ledger_entry(tx))
        return tx

    async def update(tx, **changes):
        old = ledger_entry(tx)
        tx = await update_transaction(tx, TransactionUpdate(**changes), db)
        await reconcile_transaction_change(db, user.id, old, ledger_entry(tx))
        return tx

    t1 = await create(40, budget_id=b1.id)
    t2 = await create(25, budget_id=b1.id)
    t3 = await create(100, tx_type="income", budget_id=b1.id)
    t4 = await create(15)

    t1 = await update(t1, amount=60)
    t2 = await update(t2, budget_id=b2.id)
    t3 = await update(t3, type="expense")
    t4 = await update(t4, budget_id=b1.id)
    t1 = await update(t1, type="income")
    t2 = await update(t2, budget_id=None)

    old = ledger_entry(t4)
    await delete_transaction(t4, db)
    await reconcile_transaction_change(db, user.id, old, None)

    for budget in (b1, b2):
        fresh = await get_budget_by_id(budget.id, user.id, db)
        result = await db.execute(select(Transaction).where(
            Transaction.budget_id == budget.id,
            Transaction.type == TransactionType.expense,
        ))
        expected = sum(abs(tx.amount) for tx in result.scalars().all())
        assert fresh.spent_amount == pytest.approx(expected)

    assert (await get_budget_by_id(b1.id, user.id, db)).spent_amount == pytest.approx(100)
    assert (await get_budget_by_id(b2.id, user.id, db)).spent_amount == pytest.approx(0)


async def test_missing_budget_is_skipped(db, user):
    ghost = uuid.uuid4()
    applied = await apply_budget_deltas(db, user.id, {ghost: 25.0})
    assert applied == {ghost: False}


async def test_other_owners_budget_is_not_touched(db, user, other_user, make_budget):
    budget = await make_budget(other_user.id, total_amount=100)
    applied = await apply_budget_deltas(db, user.id, {budget.id: 25.0})
    assert applied == {budget.id: False}
    budget = await get_budget_by_id(budget.id, other_user.id, db)
    assert budget.spent_amount == 0


async def test_delete_budget_unlinks_all_transactions(db, user, make_budget, make_transaction):
    budget = await make_budget(user.id, spent_amount=60)
    other = await make_budget(user.id, name="Other")
    for amount in (-10, -20, -30):
        await make_transaction(user.id, amount, budget_id=budget.id)
    kept = await make_transaction(user.id, -5, budget_id=other.id)

    assert await count_linked_transactions(db, budget.id, user.id) == 3
    unlinked = await delete_budget_with_unlink(db, budget)

    assert unlinked == 3
    assert await count_linked_transactions(db, budget.id, user.id) == 0
    assert await get_budget_by_id(budget.id, user.id, db) is None
    kept = await db.get(Transaction, kept.id, populate_existing=True)
    assert kept.budget_id == other.id


async def test_recalculate_repairs_stale_total(db, user, make_budget, make_transaction):
    budget = await make_budget(user.id, spent_amount=999)
    await make_transaction(user.id, -12.5, budget_id=budget.id)
    await make_transaction(user.id, -7.5, budget_id=budget.id)
    await make_transaction(user.id, 100, type=TransactionType.income, budget_id=budget.id)

    assert await recalculate_budget_spent(db, budget) == pytest.approx(20)
    budget = await get_budget_by_id(budget.id, user.id, db)
    assert budget.spent_amount == pytest.approx(20)

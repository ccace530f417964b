import uuid
from datetime import date

import pytest

from minty.crud.budget import get_budget_by_id
from minty.models.transaction import Transaction
from minty.utils.ledger import LedgerError

TODAY = date.today().isoformat()


async def create_category(client, name="Food", type="expense"):
    response = await client.post("/api/v1/categories", json={"name": name, "type": type})
    assert response.status_code == 201, response.text
    return response.json()


async def create_budget(client, total_amount=100):
    response = await client.post("/api/v1/budgets", json={
        "name": "Groceries",
        "type": "monthly",
        "total_amount": total_amount,
        "start_date": "2020-01-01",
        "end_date": "2099-12-31",
    })
    assert response.status_code == 201, response.text
    return response.json()


async def create_transaction(client, category_id, amount, budget_id=None, type="expense", **extra):
    payload = {
        "description": "Test",
        "amount": amount,
        "type": type,
        "category_id": category_id,
        "budget_id": budget_id,
        "transaction_date": TODAY,
        **extra,
    }
    return await client.post("/api/v1/transactions", json=payload)


async def spent(client, budget_id):
    response = await client.get(f"/api/v1/budgets/{budget_id}")
    return response.json()["spent_amount"]


async def test_expense_is_stored_negative_and_updates_budget(client):
    category = await create_category(client)
    budget = await create_budget(client)

    response = await create_transaction(client, category["id"], 50, budget["id"], tags="weekly, food ,")

    assert response.status_code == 201
    body = response.json()
    assert body["amount"] == -50
    assert body["tags"] == ["weekly", "food"]
    assert "X-Ledger-Status" not in response.headers
    assert await spent(client, budget["id"]) == 50


async def test_update_and_delete_keep_budget_in_sync(client):
    category = await create_category(client)
    budget = await create_budget(client)
    first = (await create_transaction(client, category["id"], 50, budget["id"])).json()
    await create_transaction(client, category["id"], 30, budget["id"])
    assert await spent(client, budget["id"]) == 80

    response = await client.patch(f"/api/v1/transactions/{first['id']}", json={"amount": 70})
    assert response.status_code == 200
    assert response.json()["amount"] == -70
    assert await spent(client, budget["id"]) == 100

    response = await client.patch(f"/api/v1/transactions/{first['id']}", json={"type": "income"})
    assert response.json()["amount"] == 70
    assert await spent(client, budget["id"]) == 30

    response = await client.patch(f"/api/v1/transactions/{first['id']}", json={"type": "expense", "budget_id": None})
    assert response.json()["budget_id"] is None
    assert await spent(client, budget["id"]) == 30

    response = await client.delete(f"/api/v1/transactions/{first['id']}")
    assert response.status_code == 204
    assert (await client.get(f"/api/v1/transactions/{first['id']}")).status_code == 404
    assert await spent(client, budget["id"]) == 30


async def test_scenario_delete_first_of_two_expenses(client):
    category = await create_category(client)
    budget = await create_budget(client, total_amount=100)
    first = (await create_transaction(client, category["id"], 50, budget["id"])).json()
    await create_transaction(client, category["id"], 30, budget["id"])
    assert await spent(client, budget["id"]) == 80

    await client.delete(f"/api/v1/transactions/{first['id']}")
    assert await spent(client, budget["id"]) == 30


async def test_invalid_references_are_rejected(client, other_user, make_category, make_budget):
    foreign_category = await make_category(other_user.id, name="Theirs")
    foreign_budget = await make_budget(other_user.id)
    category = await create_category(client)

    response = await create_transaction(client, str(uuid.uuid4()), 10)
    assert response.status_code == 400

    response = await create_transaction(client, str(foreign_category.id), 10)
    assert response.status_code == 400

    response = await create_transaction(client, category["id"], 10, str(foreign_budget.id))
    assert response.status_code == 400


async def test_validation_errors(client):
    category = await create_category(client)
    response = await create_transaction(client, category["id"], 0)
    assert response.status_code == 422

    response = await client.post("/api/v1/transactions", json={"description": "x", "amount": 5, "type": "expense"})
    assert response.status_code == 422


async def test_ledger_failure_keeps_transaction_and_flags_response(client, monkeypatch):
    category = await create_category(client)
    budget = await create_budget(client)

    async def failing_reconcile(*args, **kwargs):
        raise LedgerError("store unavailable")

    monkeypatch.setattr("minty.api.v1.routes.transactions.reconcile_transaction_change", failing_reconcile)

    response = await create_transaction(client, category["id"], 25, budget["id"])

    assert response.status_code == 201
    assert response.headers["X-Ledger-Status"] == "stale"
    assert (await client.get(f"/api/v1/transactions/{response.json()['id']}")).status_code == 200
    assert await spent(client, budget["id"]) == 0

    monkeypatch.undo()
    response = await client.post(f"/api/v1/budgets/{budget['id']}/reconcile")
    assert response.status_code == 200
    assert response.json()["spent_amount"] == 25


async def test_listing_is_newest_first_and_filterable(client):
    category = await create_category(client)
    await create_transaction(client, category["id"], 5, transaction_date="2025-01-10", description="old")
    await create_transaction(client, category["id"], 5, transaction_date="2025-03-10", description="new")

    response = await client.get("/api/v1/transactions")
    assert [tx["description"] for tx in response.json()] == ["new", "old"]

    response = await client.get("/api/v1/transactions", params={"start_date": "2025-02-01"})
    assert [tx["description"] for tx in response.json()] == ["new"]


async def test_budget_delete_requires_confirmation(client, db, user):
    category = await create_category(client)
    budget = await create_budget(client)
    ids = [
        (await create_transaction(client, category["id"], amount, budget["id"])).json()["id"]
        for amount in (10, 20, 30)
    ]

    response = await client.get(f"/api/v1/budgets/{budget['id']}/linked-count")
    assert response.json()["linked_transactions"] == 3

    response = await client.delete(f"/api/v1/budgets/{budget['id']}")
    assert response.status_code == 409
    assert response.json()["detail"]["linked_transactions"] == 3

    response = await client.delete(f"/api/v1/budgets/{budget['id']}", params={"confirm": "true"})
    assert response.status_code == 204
    assert (await client.get(f"/api/v1/budgets/{budget['id']}")).status_code == 404
    assert await get_budget_by_id(uuid.UUID(budget["id"]), user.id, db) is None

    for tx_id in ids:
        tx = await db.get(Transaction, uuid.UUID(tx_id), populate_existing=True)
        assert tx.budget_id is None


async def test_budget_without_links_deletes_directly(client):
    budget = await create_budget(client)
    response = await client.delete(f"/api/v1/budgets/{budget['id']}")
    assert response.status_code == 204


@pytest.mark.parametrize("payload", [
    {"name": "Bad", "total_amount": 100, "start_date": "2025-08-31", "end_date": "2025-08-01"},
    {"name": "Bad", "total_amount": 0, "start_date": "2025-08-01", "end_date": "2025-08-31"},
    {"name": "Bad", "total_amount": 100, "start_date": "2025-08-01", "end_date": "2025-08-31", "type": "yearly"},
])
async def test_budget_validation(client, payload):
    response = await client.post("/api/v1/budgets", json=payload)
    assert response.status_code == 422


async def test_budget_patch_checks_dates_and_ignores_spent(client):
    budget = await create_budget(client)
    response = await client.patch(f"/api/v1/budgets/{budget['id']}", json={"end_date": "2019-01-01"})
    assert response.status_code == 400

    response = await client.patch(f"/api/v1/budgets/{budget['id']}", json={"total_amount": 250, "spent_amount": 999})
    assert response.status_code == 200
    assert response.json()["total_amount"] == 250
    assert response.json()["spent_amount"] == 0

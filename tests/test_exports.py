import csv
import io
import uuid
from datetime import date
from types import SimpleNamespace

from minty.utils.exports import BUDGET_COLUMNS, CATEGORY_COLUMNS, TRANSACTION_COLUMNS, build_csv, build_pdf

FOOD = SimpleNamespace(
    id=uuid.uuid4(), name="Food", type="expense", color="#ff7300",
    monthly_limit=200.0, alert_enabled=True, alert_threshold=80,
)
BUDGET = SimpleNamespace(
    id=uuid.uuid4(), name="August", type="monthly", total_amount=500.0, spent_amount=42.5,
    start_date=date(2025, 8, 1), end_date=date(2025, 8, 31),
)
TRANSACTIONS = [
    SimpleNamespace(
        id=uuid.uuid4(), transaction_date=date(2025, 8, 3), description="Lunch", type="expense",
        amount=-42.5, category_id=FOOD.id, category=None, budget_id=BUDGET.id, notes="", tags="work,food",
    ),
    SimpleNamespace(
        id=uuid.uuid4(), transaction_date=date(2025, 8, 4), description="Gift", type="expense",
        amount=-10.0, category_id=uuid.uuid4(), category=None, budget_id=None, notes="", tags=None,
    ),
]


def test_csv_has_one_section_per_collection():
    rows = list(csv.reader(io.StringIO(build_csv([FOOD], [BUDGET], TRANSACTIONS))))

    assert rows[0] == ["# Categories"]
    assert rows[1] == CATEGORY_COLUMNS
    assert rows[2][1:3] == ["Food", "expense"]
    assert rows[3] == []
    assert rows[4] == ["# Budgets"]
    assert rows[5] == BUDGET_COLUMNS
    assert rows[6][1] == "August"
    assert rows[6][4] == "42.50"
    assert rows[7] == []
    assert rows[8] == ["# Transactions"]
    assert rows[9] == TRANSACTION_COLUMNS
    assert rows[10][1:6] == ["2025-08-03", "Lunch", "expense", "-42.50", "Food"]
    assert rows[11][5] == "Uncategorized"


def test_csv_structure_is_stable_for_empty_collections():
    first = build_csv([], [], [])
    assert first == build_csv([], [], [])
    assert first.splitlines()[0] == "# Categories"


def test_pdf_is_generated():
    content = build_pdf([FOOD], [BUDGET], TRANSACTIONS * 40)
    assert content.startswith(b"%PDF")
    assert len(content) > 1000

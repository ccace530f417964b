"""
Read-only financial aggregates.

Everything here is a pure function over already-loaded rows. Inputs may be ORM
objects or anything exposing the same attribute names; a nested ``category``
may be an object or a mapping. Empty inputs give empty or zero results.
"""
from collections import defaultdict
from collections.abc import Mapping
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

UNCATEGORIZED = "Uncategorized"

# Fixed month length used for end-of-month projections
PROJECTION_DAYS = 31


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def type_of(obj: Any) -> str:
    value = _field(obj, "type")
    return getattr(value, "value", value) or ""


def _amount(obj: Any) -> float:
    try:
        return float(_field(obj, "amount", 0.0) or 0.0)
    except (TypeError, ValueError):
        return 0.0


def is_expense(tx: Any) -> bool:
    return type_of(tx) == "expense"


def is_income(tx: Any) -> bool:
    return type_of(tx) == "income"


def category_names(categories: Optional[Iterable[Any]]) -> Dict[Any, str]:
    return {_field(c, "id"): _field(c, "name") for c in categories or []}


def resolve_category_name(tx: Any, names_by_id: Optional[Dict[Any, str]] = None) -> str:
    """Name of the transaction's category, or "Uncategorized" when it cannot be found."""
    names_by_id = names_by_id or {}
    category_id = _field(tx, "category_id")
    if category_id is not None and category_id in names_by_id:
        return names_by_id[category_id]
    nested = _field(tx, "category")
    name = _field(nested, "name")
    return name or UNCATEGORIZED


def transactions_in_range(transactions: Iterable[Any], start: date, end: date) -> List[Any]:
    """Transactions dated within [start, end]."""
    return [
        tx for tx in transactions or []
        if _field(tx, "transaction_date") is not None and start <= _field(tx, "transaction_date") <= end
    ]


def transactions_in_month(transactions: Iterable[Any], year: int, month: int) -> List[Any]:
    result = []
    for tx in transactions or []:
        tx_date = _field(tx, "transaction_date")
        if tx_date is not None and tx_date.year == year and tx_date.month == month:
            result.append(tx)
    return result


def category_spending(
    transactions: Iterable[Any],
    categories: Optional[Iterable[Any]] = None,
    top_n: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Expense totals per category name, largest first.

    Ties are broken by name so the result does not depend on input order.
    """
    names_by_id = category_names(categories)
    totals: Dict[str, float] = defaultdict(float)
    for tx in transactions or []:
        if not is_expense(tx):
            continue
        totals[resolve_category_name(tx, names_by_id)] += abs(_amount(tx))

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    if top_n is not None:
        ranked = ranked[:top_n]
    return [{"name": name, "amount": amount} for name, amount in ranked]


def month_totals(transactions: Iterable[Any], year: int, month: int) -> Dict[str, float]:
    income = 0.0
    expenses = 0.0
    for tx in transactions_in_month(transactions, year, month):
        if is_income(tx):
            income += _amount(tx)
        elif is_expense(tx):
            expenses += abs(_amount(tx))
    return {"income": income, "expenses": expenses, "net": income - expenses}


def _shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def monthly_trends(
    transactions: Iterable[Any],
    months: int = 6,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    Income/expense/net per "YYYY-MM" bucket, oldest first, at most ``months`` buckets.

    When ``today`` is given, buckets after the current month or older than the
    trailing window are dropped.
    """
    buckets: Dict[str, Dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0})
    for tx in transactions or []:
        tx_date = _field(tx, "transaction_date")
        if tx_date is None:
            continue
        key = f"{tx_date.year:04d}-{tx_date.month:02d}"
        if is_income(tx):
            buckets[key]["income"] += _amount(tx)
        elif is_expense(tx):
            buckets[key]["expenses"] += abs(_amount(tx))

    keys = sorted(buckets)
    if today is not None:
        first_year, first_month = _shift_month(today.year, today.month, -(months - 1))
        lower = f"{first_year:04d}-{first_month:02d}"
        upper = f"{today.year:04d}-{today.month:02d}"
        keys = [k for k in keys if lower <= k <= upper]
    if months > 0:
        keys = keys[-months:]
    else:
        keys = []

    return [
        {
            "month": key,
            "income": buckets[key]["income"],
            "expenses": buckets[key]["expenses"],
            "net": buckets[key]["income"] - buckets[key]["expenses"],
        }
        for key in keys
    ]


def budget_utilization(spent: float, total: float) -> float:
    if not total:
        return 0.0
    return (float(spent or 0.0) / float(total)) * 100


def utilization_status(pct: float) -> str:
    if pct >= 100:
        return "over"
    if pct >= 90:
        return "warning"
    if pct >= 75:
        return "caution"
    return "good"


def summarize_budget(budget: Any, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    spent = float(_field(budget, "spent_amount", 0.0) or 0.0)
    limit = float(_field(budget, "total_amount", 0.0) or 0.0)
    pct = budget_utilization(spent, limit)
    end_date = _field(budget, "end_date")
    budget_type = _field(budget, "type")
    return {
        "id": _field(budget, "id"),
        "name": _field(budget, "name"),
        "type": getattr(budget_type, "value", budget_type),
        "spent": spent,
        "limit": limit,
        "utilization": pct,
        "remaining": max(limit - spent, 0.0),
        "status": utilization_status(pct),
        "is_active": end_date is None or end_date >= today,
        "start_date": _field(budget, "start_date"),
        "end_date": end_date,
    }


def daily_spend_projection(month_expense: float, today: Optional[date] = None) -> Tuple[float, float]:
    """Return (daily_rate, projected_month_expense) from spending so far this month."""
    today = today or date.today()
    daily_rate = float(month_expense or 0.0) / max(today.day, 1)
    return daily_rate, daily_rate * PROJECTION_DAYS


def category_limit_status(spent: float, limit: float, threshold: float = 90) -> str:
    if not limit:
        return "no-limit"
    pct = (spent / limit) * 100
    if pct >= 100:
        return "over"
    if pct >= threshold:
        return "warning"
    return "good"


def category_month_stats(
    categories: Iterable[Any],
    transactions: Iterable[Any],
    year: int,
    month: int,
) -> List[Dict[str, Any]]:
    """Per-category count, total and limit status for one calendar month."""
    month_txs = transactions_in_month(transactions, year, month)
    stats = []
    for category in categories or []:
        category_id = _field(category, "id")
        category_type = type_of(category) or "expense"
        own = [tx for tx in month_txs if _field(tx, "category_id") == category_id]
        if category_type == "income":
            total = sum(_amount(tx) for tx in own if is_income(tx))
        else:
            total = sum(abs(_amount(tx)) for tx in own if is_expense(tx))
        limit = float(_field(category, "monthly_limit", 0.0) or 0.0)
        threshold = _field(category, "alert_threshold", 90) or 90
        stats.append({
            "category_id": category_id,
            "name": _field(category, "name"),
            "type": category_type,
            "transaction_count": len(own),
            "total": total,
            "monthly_limit": limit,
            "remaining": max(limit - total, 0.0) if limit else 0.0,
            "percentage": (total / limit) * 100 if limit else 0.0,
            "status": category_limit_status(total, limit, threshold),
        })
    return stats


def week_summary(
    transactions: Iterable[Any],
    categories: Optional[Iterable[Any]] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Spending over the last seven days compared with the seven days before."""
    today = today or date.today()
    transactions = list(transactions or [])
    this_week = transactions_in_range(transactions, today - timedelta(days=6), today)
    last_week = transactions_in_range(transactions, today - timedelta(days=13), today - timedelta(days=7))

    total = sum(abs(_amount(tx)) for tx in this_week if is_expense(tx))
    previous = sum(abs(_amount(tx)) for tx in last_week if is_expense(tx))
    top = category_spending(this_week, categories, top_n=1)

    return {
        "total_spent": total,
        "previous_total": previous,
        "change_percent": ((total - previous) / previous) * 100 if previous else None,
        "top_category": top[0]["name"] if top else None,
        "transaction_count": len(this_week),
    }


def month_summary(
    transactions: Iterable[Any],
    categories: Optional[Iterable[Any]] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> Dict[str, Any]:
    """Totals for the monthly report: spent, saved and the top three categories."""
    if year is None or month is None:
        today = date.today()
        year, month = today.year, today.month
    month_txs = transactions_in_month(transactions, year, month)
    totals = month_totals(month_txs, year, month)
    return {
        "month": f"{year:04d}-{month:02d}",
        "total_spent": totals["expenses"],
        "total_income": totals["income"],
        "saved": totals["net"],
        "top_categories": category_spending(month_txs, categories, top_n=3),
    }

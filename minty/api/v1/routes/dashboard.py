# minty/api/v1/routes/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
from datetime import date

from minty.core.database import get_async_session
from minty.core.auth import User
from minty.crud.budget import get_budgets_for_user
from minty.crud.category import get_categories_for_user
from minty.crud.transaction import get_transactions_for_user
from minty.schemas.transaction import TransactionRead
from minty.utils import aggregation
from minty.api.deps import get_current_user

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

# Budgets above this utilisation show up in the alerts panel
DASHBOARD_ALERT_PERCENT = 75

@router.get("/summary")
async def get_dashboard_summary(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
) -> Dict:
    """
    Returns everything the dashboard renders, computed fresh from the stores:
    - Cards: this month's income, expenses, net, daily rate and projection
    - Charts: six-month income/expense trend, top spending categories
    - Tables: recent transactions, budget health and alerts
    """
    today = date.today()

    categories = await get_categories_for_user(user.id, db)
    budgets = await get_budgets_for_user(user.id, db)
    all_transactions = await get_transactions_for_user(user.id, db)

    month_transactions = aggregation.transactions_in_month(all_transactions, today.year, today.month)
    totals = aggregation.month_totals(month_transactions, today.year, today.month)
    daily_rate, projected = aggregation.daily_spend_projection(totals["expenses"], today)

    budget_health = [aggregation.summarize_budget(b, today) for b in budgets]
    budget_alerts = [
        b for b in budget_health
        if b["is_active"] and b["utilization"] > DASHBOARD_ALERT_PERCENT
    ]

    spending_by_category = aggregation.category_spending(month_transactions, categories, top_n=5)

    return {
        "cards": {
            "month": f"{today.year:04d}-{today.month:02d}",
            "income": round(totals["income"], 2),
            "expenses": round(totals["expenses"], 2),
            "net": round(totals["net"], 2),
            "daily_spending_rate": round(daily_rate, 2),
            "projected_month_expenses": round(projected, 2),
        },
        "spending_trends": aggregation.monthly_trends(all_transactions, months=6, today=today),
        "top_spending_categories": spending_by_category,
        "recent_transactions": [
            TransactionRead.model_validate(tx).model_dump(mode="json") for tx in all_transactions[:5]
        ],
        "budget_health": budget_health,
        "budget_alerts": budget_alerts,
        "quick_stats": {
            "total_transactions": len(all_transactions),
            "month_transactions": len(month_transactions),
            "categories": len(categories),
            "active_budgets": sum(1 for b in budget_health if b["is_active"]),
        },
    }

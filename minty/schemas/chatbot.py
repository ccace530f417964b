from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import date, datetime

# Bump whenever a field is added, removed or renamed so prompt changes are explicit
CONTEXT_SCHEMA_VERSION = 1


class ChatbotRequest(BaseModel):
    query: str = Field(..., min_length=1)


class ChatbotResponse(BaseModel):
    response: str
    model_used: str


class Insight(BaseModel):
    type: Literal["prediction", "warning", "success", "goal", "tip"] = "tip"
    icon: str = "💡"
    title: str
    description: str = "Analysis of your financial patterns"
    actionTip: str = "Consider reviewing your spending patterns"
    trend: Literal["warning", "success", "info"] = "info"
    interactive: bool = True
    category: Optional[str] = None


class InsightsResponse(BaseModel):
    insights: List[Insight]
    model_used: str


# ---------------------------------------------------------------------------
# Financial context passed to the language model
# ---------------------------------------------------------------------------

class CategorySpend(BaseModel):
    name: str
    amount: float


class ContextBudget(BaseModel):
    name: str
    type: Optional[str] = None
    spent: float
    limit: float
    utilization: float
    remaining: float
    status: str
    is_active: bool
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ContextTransaction(BaseModel):
    transaction_date: Optional[date] = None
    description: str
    type: str
    amount: float
    category: str


class ContextCategory(BaseModel):
    name: str
    type: str


class FinancialContext(BaseModel):
    schema_version: int = CONTEXT_SCHEMA_VERSION
    generated_at: datetime
    currency: str = "USD"
    month: str  # YYYY-MM
    days_into_month: int
    month_income: float
    month_expenses: float
    month_net: float
    daily_spending_rate: float
    projected_month_expenses: float
    total_income: float
    total_expenses: float
    transaction_count: int
    average_transaction: float
    largest_month_expense: float
    most_active_category: Optional[str] = None
    active_budget_count: int
    category_spending: List[CategorySpend] = Field(default_factory=list)
    budgets: List[ContextBudget] = Field(default_factory=list)
    recent_transactions: List[ContextTransaction] = Field(default_factory=list)
    categories: List[ContextCategory] = Field(default_factory=list)

"""
Financial context construction and the language-model assistant built on it.

The context is an explicit, versioned schema (FinancialContext) so that any
change to what the model sees is a visible schema change. Every model failure
degrades to a static fallback; nothing here raises to the caller.
"""
import json
import logging
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from minty.schemas.chatbot import (
    CategorySpend,
    ContextBudget,
    ContextCategory,
    ContextTransaction,
    FinancialContext,
    Insight,
)
from minty.utils import aggregation
from minty.utils.llm import LLMError, generate_completion

logger = logging.getLogger(__name__)

TOP_CATEGORY_COUNT = 8
CONTEXT_TRANSACTION_COUNT = 15
RENDERED_TRANSACTION_COUNT = 10

FALLBACK_MODEL_NAME = "fallback"

FALLBACK_ANSWER = (
    "I'm having trouble reaching the AI assistant right now. 😕 "
    "Your data is safe; please try again in a moment, or check the dashboard "
    "for your latest spending summary in the meantime."
)

FALLBACK_INSIGHT = {
    "type": "tip",
    "icon": "📊",
    "title": "AI Analysis Available",
    "description": "Unable to generate detailed insights at the moment",
    "actionTip": "Try refreshing the page or add more transaction data for better analysis",
    "trend": "info",
    "interactive": True,
    "category": None,
}

INSIGHT_TYPES = {"prediction", "warning", "success", "goal", "tip"}
INSIGHT_TRENDS = {"warning", "success", "info"}

CHAT_SYSTEM_PROMPT = """You are a personal financial assistant named "Minty AI" analyzing this user's financial data from their Minty app.
Provide helpful, accurate insights based ONLY on the data provided below.

FINANCIAL DATA CONTEXT:
{context}

Guidelines:
- Be conversational, friendly, and helpful
- Provide specific numbers from the data when relevant
- Suggest actionable insights and recommendations
- For budget questions, reference their actual budgets
- Keep responses concise but informative (2-3 paragraphs max)
- Use emojis occasionally to make responses more engaging
- If the question cannot be answered with the available data, explain what information would be needed
- Always end with offering to help with other financial questions"""

INSIGHTS_SYSTEM_PROMPT = """You are Minty AI, an advanced financial analyst that provides smart spending insights based on real user data.

FINANCIAL DATA CONTEXT:
{context}

Analyze this financial data and provide 3-5 smart insights as a JSON array. Each insight should be actionable, data-driven, and personalized.

STRICT OUTPUT FORMAT - Return ONLY valid JSON in this exact structure:
[
  {{
    "type": "prediction|warning|success|goal|tip",
    "icon": "single emoji",
    "title": "Clear, specific insight title (max 80 chars)",
    "description": "Detailed explanation with specific numbers from the data (max 120 chars)",
    "actionTip": "Specific, actionable recommendation (max 150 chars)",
    "trend": "warning|success|info",
    "interactive": true,
    "category": "relevant category name if applicable"
  }}
]

INSIGHT TYPES:
- "prediction": Budget overages, spending projections based on current pace
- "warning": Overspending, unusual patterns, budget concerns
- "success": Savings achievements, spending reductions, goal progress
- "goal": Progress tracking, recommendations for financial goals
- "tip": Optimization suggestions, category-specific advice

Use actual numbers from the data and focus on current month trends and projections.
Return ONLY the JSON array, no additional text or formatting."""


def build_financial_context(
    transactions: Iterable[Any],
    budgets: Iterable[Any],
    categories: Iterable[Any],
    currency: str = "USD",
    today: Optional[date] = None,
) -> FinancialContext:
    """Snapshot the user's finances for the language model."""
    today = today or date.today()
    transactions = sorted(
        list(transactions or []),
        key=lambda tx: getattr(tx, "transaction_date", None) or date.min,
        reverse=True,
    )
    budgets = list(budgets or [])
    categories = list(categories or [])
    names_by_id = aggregation.category_names(categories)

    month_txs = aggregation.transactions_in_month(transactions, today.year, today.month)
    totals = aggregation.month_totals(month_txs, today.year, today.month)
    daily_rate, projected = aggregation.daily_spend_projection(totals["expenses"], today)

    # Spending breakdown covers the current month only
    month_spending = aggregation.category_spending(month_txs, categories, top_n=TOP_CATEGORY_COUNT)
    all_spending = aggregation.category_spending(transactions, categories, top_n=1)

    total_income = sum(abs(float(tx.amount)) for tx in transactions if aggregation.is_income(tx))
    total_expenses = sum(abs(float(tx.amount)) for tx in transactions if aggregation.is_expense(tx))
    count = len(transactions)
    largest = max(
        (abs(float(tx.amount)) for tx in month_txs if aggregation.is_expense(tx)),
        default=0.0,
    )

    budget_summaries = [aggregation.summarize_budget(b, today) for b in budgets]

    recent = [
        ContextTransaction(
            transaction_date=tx.transaction_date,
            description=tx.description,
            type=aggregation.type_of(tx),
            amount=abs(float(tx.amount)),
            category=aggregation.resolve_category_name(tx, names_by_id),
        )
        for tx in transactions[:CONTEXT_TRANSACTION_COUNT]
    ]

    return FinancialContext(
        generated_at=datetime.utcnow(),
        currency=currency,
        month=f"{today.year:04d}-{today.month:02d}",
        days_into_month=today.day,
        month_income=totals["income"],
        month_expenses=totals["expenses"],
        month_net=totals["net"],
        daily_spending_rate=daily_rate,
        projected_month_expenses=projected,
        total_income=total_income,
        total_expenses=total_expenses,
        transaction_count=count,
        average_transaction=(sum(abs(float(tx.amount)) for tx in transactions) / count) if count else 0.0,
        largest_month_expense=largest,
        most_active_category=all_spending[0]["name"] if all_spending else None,
        active_budget_count=sum(1 for b in budget_summaries if b["is_active"]),
        category_spending=[CategorySpend(**row) for row in month_spending],
        budgets=[ContextBudget(**{k: v for k, v in b.items() if k != "id"}) for b in budget_summaries],
        recent_transactions=recent,
        categories=[
            ContextCategory(name=c.name, type=aggregation.type_of(c) or "expense")
            for c in categories
        ],
    )


def _money(value: float, symbol: str) -> str:
    return f"{symbol}{value:,.2f}"


def render_financial_context(ctx: FinancialContext) -> str:
    """Render the context as the plain-text block placed in the system prompt."""
    symbol = "$" if ctx.currency == "USD" else f"{ctx.currency} "
    lines = [
        f"CONTEXT SCHEMA: v{ctx.schema_version}",
        "",
        f"CURRENT FINANCIAL SNAPSHOT ({ctx.month}):",
        f"- This Month Income: {_money(ctx.month_income, symbol)}",
        f"- This Month Expenses: {_money(ctx.month_expenses, symbol)}",
        f"- This Month Net Savings: {_money(ctx.month_net, symbol)}",
        f"- Daily Spending Rate: {_money(ctx.daily_spending_rate, symbol)}",
        f"- Days into Month: {ctx.days_into_month}",
        f"- Projected Monthly Expenses: {_money(ctx.projected_month_expenses, symbol)}",
        "",
        "SPENDING BREAKDOWN (Current Month):",
    ]
    if ctx.category_spending:
        lines += [f"- {row.name}: {_money(row.amount, symbol)}" for row in ctx.category_spending]
    else:
        lines.append("- No expenses recorded this month")

    lines += ["", "BUDGET ANALYSIS:"]
    if ctx.budgets:
        for b in ctx.budgets:
            lines.append(
                f"- {b.name}: {_money(b.spent, symbol)} spent of {_money(b.limit, symbol)} budget "
                f"({b.utilization:.1f}% used, {_money(b.remaining, symbol)} remaining, {b.status})"
            )
    else:
        lines.append("No active budgets to analyze")

    lines += ["", "RECENT TRANSACTION PATTERNS:"]
    for tx in ctx.recent_transactions[:RENDERED_TRANSACTION_COUNT]:
        sign = "+" if tx.type == "income" else "-"
        when = tx.transaction_date.isoformat() if tx.transaction_date else "unknown date"
        lines.append(f"- {when}: {tx.description} - {sign}{_money(tx.amount, symbol)} ({tx.category})")
    if not ctx.recent_transactions:
        lines.append("- No transactions recorded yet")

    lines += [
        "",
        "FINANCIAL TRENDS:",
        f"- Total Transaction Count: {ctx.transaction_count}",
        f"- Average Transaction Size: {_money(ctx.average_transaction, symbol)}",
        f"- Most Active Category: {ctx.most_active_category or 'None'}",
        f"- Largest Expense This Month: {_money(ctx.largest_month_expense, symbol)}",
        "",
        "ADDITIONAL CONTEXT:",
        f"- Analysis Date: {ctx.generated_at.date().isoformat()}",
        f"- Categories Available: {len(ctx.categories)}",
        f"- Active Budgets: {ctx.active_budget_count}",
    ]
    return "\n".join(lines)


_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def fallback_insights() -> List[Insight]:
    return [Insight(**FALLBACK_INSIGHT)]


def read_insights(raw: Optional[str]) -> Tuple[List[Insight], bool]:
    """
    Turn the model's reply into insights.

    Returns ``(insights, fell_back)``. A reply that is not a JSON array (or not
    JSON at all) yields exactly one fallback insight with ``fell_back`` set.
    Missing or invalid fields on each item get defaults.
    """
    text = (raw or "").strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1)

    try:
        data = json.loads(text or "[]")
    except ValueError:
        logger.warning(f"Failed to parse AI response as JSON: {text[:200]!r}")
        return fallback_insights(), True

    if not isinstance(data, list):
        logger.warning(f"AI response is not an array (got {type(data).__name__}); using fallback insight")
        return fallback_insights(), True

    insights: List[Insight] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            item = {}
        insight_type = item.get("type") if item.get("type") in INSIGHT_TYPES else "tip"
        trend = item.get("trend") if item.get("trend") in INSIGHT_TRENDS else "info"
        try:
            insights.append(Insight(
                type=insight_type,
                icon=str(item.get("icon") or "💡"),
                title=str(item.get("title") or f"Insight {index + 1}"),
                description=str(item.get("description") or "Analysis of your financial patterns"),
                actionTip=str(item.get("actionTip") or "Consider reviewing your spending patterns"),
                trend=trend,
                interactive=True,
                category=str(item["category"]) if item.get("category") else None,
            ))
        except ValidationError as e:
            logger.warning(f"Skipping malformed insight #{index + 1}: {str(e)}")

    if not insights:
        logger.warning("AI response contained no insights; using fallback insight")
        return fallback_insights(), True
    return insights, False


def parse_insights(raw: Optional[str]) -> List[Insight]:
    insights, _ = read_insights(raw)
    return insights


async def ask_assistant(
    question: str,
    ctx: FinancialContext,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[str, str]:
    """Free-text answer to the user's question. Returns (answer, model_used)."""
    messages = [
        {"role": "system", "content": CHAT_SYSTEM_PROMPT.format(context=render_financial_context(ctx))},
        {"role": "user", "content": question},
    ]
    try:
        answer, model = await generate_completion(
            messages, temperature=0.7, max_tokens=1000, title="Minty Financial Assistant", client=client
        )
    except LLMError as e:
        logger.warning(f"Chat assistant unavailable, using fallback answer: {str(e)}")
        return FALLBACK_ANSWER, FALLBACK_MODEL_NAME

    answer = (answer or "").strip()
    if not answer:
        logger.warning("Chat assistant returned an empty answer, using fallback")
        return FALLBACK_ANSWER, FALLBACK_MODEL_NAME
    return answer, model


async def generate_insights(
    ctx: FinancialContext,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[List[Insight], str]:
    """Structured smart insights. Returns (insights, model_used)."""
    messages = [
        {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT.format(context=render_financial_context(ctx))},
        {"role": "user", "content": "Generate smart financial insights based on my data."},
    ]
    try:
        raw, model = await generate_completion(
            messages, temperature=0.3, max_tokens=1500, title="Minty Smart Insights", client=client
        )
    except LLMError as e:
        logger.warning(f"Insights model unavailable, using fallback insight: {str(e)}")
        return fallback_insights(), FALLBACK_MODEL_NAME

    insights, fell_back = read_insights(raw)
    if fell_back:
        return insights, FALLBACK_MODEL_NAME
    return insights, model

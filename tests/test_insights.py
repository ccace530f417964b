import json
import uuid
from datetime import date, timedelta
from types import SimpleNamespace

import httpx
import pytest

from minty.core.config import settings
from minty.schemas.chatbot import CONTEXT_SCHEMA_VERSION
from minty.utils import insights
from minty.utils.llm import LLMError, generate_completion

TODAY = date(2025, 8, 20)
FOOD = SimpleNamespace(id=uuid.uuid4(), name="Food", type="expense")


def tx(amount, type="expense", when=TODAY, category_id=FOOD.id, description="tx"):
    return SimpleNamespace(
        amount=amount, type=type, transaction_date=when,
        category_id=category_id, category=None, description=description,
    )


def completion(content):
    return {"choices": [{"message": {"content": content}}]}


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "test-key")


class TestParseInsights:
    def test_object_instead_of_array_gives_single_fallback_tip(self):
        result = insights.parse_insights("{}")
        assert len(result) == 1
        assert result[0].type == "tip"
        assert result[0].title

    def test_invalid_json_gives_fallback(self):
        result = insights.parse_insights("Here are your insights: ...")
        assert [i.title for i in result] == ["AI Analysis Available"]

    def test_missing_fields_get_defaults(self):
        raw = "```json\n" + json.dumps([
            {"type": "warning", "title": "Dining is up", "category": "Food"},
            {"type": "nonsense", "trend": "sideways"},
        ]) + "\n```"
        first, second = insights.parse_insights(raw)

        assert first.type == "warning"
        assert first.icon == "💡"
        assert first.category == "Food"
        assert second.type == "tip"
        assert second.trend == "info"
        assert second.title == "Insight 2"
        assert second.description == "Analysis of your financial patterns"
        assert second.actionTip == "Consider reviewing your spending patterns"
        assert second.category is None
        assert second.interactive is True


class TestFinancialContext:
    def test_build_context(self):
        transactions = [tx(-10 - i, when=TODAY - timedelta(days=i)) for i in range(20)]
        transactions.append(tx(3000, type="income", when=TODAY.replace(day=1)))
        transactions.append(tx(-500, when=date(2025, 7, 15)))
        budget = SimpleNamespace(
            id=uuid.uuid4(), name="Groceries", type="monthly", spent_amount=90.0, total_amount=100.0,
            start_date=date(2025, 8, 1), end_date=date(2025, 8, 31),
        )

        ctx = insights.build_financial_context(transactions, [budget], [FOOD], today=TODAY)

        assert ctx.schema_version == CONTEXT_SCHEMA_VERSION
        assert ctx.month == "2025-08"
        assert ctx.days_into_month == 20
        assert ctx.month_income == 3000
        # 20 expenses dated 2025-08-01..2025-08-20, the July one excluded
        assert ctx.month_expenses == pytest.approx(sum(10 + i for i in range(20)))
        assert ctx.daily_spending_rate == pytest.approx(ctx.month_expenses / 20)
        assert ctx.projected_month_expenses == pytest.approx(ctx.daily_spending_rate * 31)
        assert ctx.largest_month_expense == 29
        assert ctx.transaction_count == 22
        assert len(ctx.recent_transactions) == 15
        assert ctx.recent_transactions[0].transaction_date == TODAY
        assert ctx.active_budget_count == 1
        assert ctx.budgets[0].status == "warning"
        assert ctx.most_active_category == "Food"

    def test_render_shows_ten_recent_transactions(self):
        transactions = [tx(-5, when=TODAY - timedelta(days=i), description=f"item-{i}") for i in range(15)]
        text = insights.render_financial_context(
            insights.build_financial_context(transactions, [], [FOOD], today=TODAY)
        )
        assert "item-9" in text
        assert "item-10" not in text
        assert "No active budgets to analyze" in text
        assert "Projected Monthly Expenses" in text

    def test_empty_inputs(self):
        ctx = insights.build_financial_context([], [], [], today=TODAY)
        assert ctx.transaction_count == 0
        assert ctx.average_transaction == 0
        assert ctx.most_active_category is None
        assert "No transactions recorded yet" in insights.render_financial_context(ctx)


class TestModelCalls:
    async def test_missing_api_key_raises(self, monkeypatch):
        monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "")
        with pytest.raises(LLMError):
            await generate_completion([{"role": "user", "content": "hi"}])

    async def test_primary_failure_uses_fallback_model(self, api_key):
        seen = []

        def handler(request):
            model = json.loads(request.content)["model"]
            seen.append(model)
            if model == settings.LLM_PRIMARY_MODEL:
                return httpx.Response(503, text="overloaded")
            return httpx.Response(200, json=completion("hello"))

        async with mock_client(handler) as client:
            content, model = await generate_completion([{"role": "user", "content": "hi"}], client=client)

        assert content == "hello"
        assert model == settings.LLM_FALLBACK_MODEL
        assert seen == [settings.LLM_PRIMARY_MODEL, settings.LLM_FALLBACK_MODEL]

    async def test_insights_non_array_reply_gives_fallback(self, api_key):
        ctx = insights.build_financial_context([], [], [], today=TODAY)
        async with mock_client(lambda request: httpx.Response(200, json=completion("{}"))) as client:
            result, model = await insights.generate_insights(ctx, client=client)
        assert len(result) == 1
        assert result[0].type == "tip"
        assert model == insights.FALLBACK_MODEL_NAME

    async def test_insights_array_reply(self, api_key):
        reply = json.dumps([{"type": "success", "icon": "🎉", "title": "Under budget"}])
        ctx = insights.build_financial_context([], [], [], today=TODAY)
        async with mock_client(lambda request: httpx.Response(200, json=completion(reply))) as client:
            result, model = await insights.generate_insights(ctx, client=client)
        assert [i.title for i in result] == ["Under budget"]
        assert model == settings.LLM_PRIMARY_MODEL

    async def test_model_reply_matching_fallback_text_keeps_model_name(self, api_key):
        reply = json.dumps([insights.FALLBACK_INSIGHT])
        ctx = insights.build_financial_context([], [], [], today=TODAY)
        async with mock_client(lambda request: httpx.Response(200, json=completion(reply))) as client:
            result, model = await insights.generate_insights(ctx, client=client)
        assert result == insights.fallback_insights()
        assert model == settings.LLM_PRIMARY_MODEL

    async def test_empty_array_reply_gives_fallback(self, api_key):
        ctx = insights.build_financial_context([], [], [], today=TODAY)
        async with mock_client(lambda request: httpx.Response(200, json=completion("[]"))) as client:
            result, model = await insights.generate_insights(ctx, client=client)
        assert [i.title for i in result] == ["AI Analysis Available"]
        assert model == insights.FALLBACK_MODEL_NAME

    async def test_assistant_falls_back_when_both_models_fail(self, api_key):
        ctx = insights.build_financial_context([], [], [], today=TODAY)
        async with mock_client(lambda request: httpx.Response(500, text="boom")) as client:
            answer, model = await insights.ask_assistant("How am I doing?", ctx, client=client)
        assert answer == insights.FALLBACK_ANSWER
        assert model == insights.FALLBACK_MODEL_NAME

    async def test_assistant_sends_context_in_system_prompt(self, api_key):
        captured = {}

        def handler(request):
            captured.update(json.loads(request.content))
            return httpx.Response(200, json=completion("You're doing great 📊"))

        ctx = insights.build_financial_context([tx(-42)], [], [FOOD], today=TODAY)
        async with mock_client(handler) as client:
            answer, _ = await insights.ask_assistant("How am I doing?", ctx, client=client)

        assert answer == "You're doing great 📊"
        assert "Minty AI" in captured["messages"][0]["content"]
        assert "Food: $42.00" in captured["messages"][0]["content"]
        assert captured["messages"][1] == {"role": "user", "content": "How am I doing?"}

# minty/api/v1/routes/chatbot.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from minty.api.deps import get_current_user
from minty.core.auth import User
from minty.core.database import get_async_session
from minty.crud.budget import get_budgets_for_user
from minty.crud.category import get_categories_for_user
from minty.crud.transaction import get_transactions_for_user
from minty.crud.user import get_profile
from minty.schemas.chatbot import ChatbotRequest, ChatbotResponse, FinancialContext, InsightsResponse
from minty.utils.insights import ask_assistant, build_financial_context, generate_insights

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_financial_context(user: User, db: AsyncSession) -> FinancialContext:
    transactions = await get_transactions_for_user(user.id, db)
    budgets = await get_budgets_for_user(user.id, db)
    categories = await get_categories_for_user(user.id, db)
    profile = await get_profile(user, db)
    return build_financial_context(transactions, budgets, categories, currency=profile.currency)


@router.get("/context", response_model=FinancialContext)
async def read_financial_context(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """The exact snapshot the assistant is given, useful for checking what the model sees."""
    return await load_financial_context(current_user, db)


@router.post("/ask", response_model=ChatbotResponse)
async def ask_chatbot(
    chatbot_request: ChatbotRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Ask the assistant a question about the user's finances.

    If the model is unavailable a static fallback answer is returned instead of an error.
    """
    ctx = await load_financial_context(current_user, db)
    answer, model_used = await ask_assistant(chatbot_request.query, ctx)
    return ChatbotResponse(response=answer, model_used=model_used)


@router.post("/insights", response_model=InsightsResponse)
async def smart_insights(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """3-5 structured insights; a single fallback tip when the model fails."""
    ctx = await load_financial_context(current_user, db)
    insights, model_used = await generate_insights(ctx)
    logger.info(f"Generated {len(insights)} insights for user {current_user.id} using {model_used}")
    return InsightsResponse(insights=insights, model_used=model_used)

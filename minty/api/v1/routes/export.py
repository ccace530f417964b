# minty/api/v1/routes/export.py
from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from minty.core.auth import User
from minty.core.database import get_async_session
from minty.crud.budget import get_budgets_for_user
from minty.crud.category import get_categories_for_user
from minty.crud.transaction import get_transactions_for_user
from minty.utils.exports import build_csv, build_pdf
from minty.api.deps import get_current_user

router = APIRouter(prefix="/export", tags=["export"])


async def _collections(user: User, db: AsyncSession):
    categories = await get_categories_for_user(user.id, db)
    budgets = await get_budgets_for_user(user.id, db)
    transactions = await get_transactions_for_user(user.id, db)
    return categories, budgets, transactions


@router.get("/csv")
async def export_csv(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    categories, budgets, transactions = await _collections(user, db)
    filename = f"minty-export-{date.today().isoformat()}.csv"
    return Response(
        content=build_csv(categories, budgets, transactions),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/pdf")
async def export_pdf(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    categories, budgets, transactions = await _collections(user, db)
    filename = f"minty-report-{date.today().isoformat()}.pdf"
    return Response(
        content=build_pdf(categories, budgets, transactions),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

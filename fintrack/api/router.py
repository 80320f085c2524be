from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.api.deps import UserContext, get_current_user
from fintrack.core.categories import EXPENSE_CATEGORIES, INCOME_CATEGORIES
from fintrack.core.database import get_db
from fintrack.schemas.analytics import ReportResponse
from fintrack.schemas.budget import BudgetOverview, BudgetResponse, BudgetSet
from fintrack.schemas.transaction import TransactionCreate, TransactionResponse, TransactionUpdate
from fintrack.services import analytics, export, reports
from fintrack.services.budgets import BudgetService
from fintrack.services.store import TransactionStore

api_router = APIRouter()

MONTH_PATTERN = r"^\d{4}-\d{2}$"


@api_router.get("/transactions", response_model=List[TransactionResponse], tags=["Transactions"])
async def list_transactions(
        start: Optional[date] = None,
        end: Optional[date] = None,
        category: Optional[str] = None,
        month: Optional[str] = Query(None, pattern=f"{MONTH_PATTERN}|^all$"),
        user: UserContext = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    if start or end:
        rows = await TransactionStore.list_in_range(db, user.user_id, start or date.min, end or date.max)
    else:
        rows = await TransactionStore.list_transactions(db, user.user_id)
    return analytics.filter_transactions(rows, category=category, month=month)


@api_router.post("/transactions", response_model=TransactionResponse, status_code=201, tags=["Transactions"])
async def add_transaction(trx: TransactionCreate, user: UserContext = Depends(get_current_user),
                          db: AsyncSession = Depends(get_db)):
    return await TransactionStore.create(db, user.user_id, trx)


@api_router.get("/transactions/{transaction_id}", response_model=TransactionResponse, tags=["Transactions"])
async def get_transaction(transaction_id: str, user: UserContext = Depends(get_current_user),
                          db: AsyncSession = Depends(get_db)):
    return await TransactionStore.get(db, transaction_id, user.user_id)


@api_router.patch("/transactions/{transaction_id}", response_model=TransactionResponse, tags=["Transactions"])
async def update_transaction(transaction_id: str, changes: TransactionUpdate,
                             user: UserContext = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await TransactionStore.update(db, transaction_id, changes, user.user_id)


@api_router.delete("/transactions/{transaction_id}", status_code=204, tags=["Transactions"])
async def delete_transaction(transaction_id: str, user: UserContext = Depends(get_current_user),
                             db: AsyncSession = Depends(get_db)):
    await TransactionStore.delete(db, transaction_id, user.user_id)
    return Response(status_code=204)


@api_router.get("/budgets", response_model=BudgetOverview, tags=["Budgets"])
async def get_budgets(
        start: Optional[date] = None,
        end: Optional[date] = None,
        overall_limit: Optional[Decimal] = Query(None, ge=0),
        user: UserContext = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    month_first, month_last = reports.current_month()
    return await BudgetService.budget_overview(db, user.user_id, start or month_first, end or month_last,
                                               overall_limit=overall_limit)


@api_router.post("/budgets", response_model=BudgetResponse, tags=["Budgets"])
async def set_budget(budget: BudgetSet, user: UserContext = Depends(get_current_user),
                     db: AsyncSession = Depends(get_db)):
    return await BudgetService.upsert_budget(db, user.user_id, budget.category, budget.limit_amount)


@api_router.delete("/budgets/{budget_id}", status_code=204, tags=["Budgets"])
async def delete_budget(budget_id: str, user: UserContext = Depends(get_current_user),
                        db: AsyncSession = Depends(get_db)):
    await BudgetService.delete_budget(db, budget_id, user.user_id)
    return Response(status_code=204)


@api_router.get("/reports/summary", response_model=ReportResponse, tags=["Reports"])
async def get_report(
        start: Optional[date] = None,
        end: Optional[date] = None,
        user: UserContext = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    return await reports.build_report(db, user.user_id, start, end)


@api_router.get("/reports/export", tags=["Reports"])
async def export_report(
        start: Optional[date] = None,
        end: Optional[date] = None,
        style: str = Query("report", pattern="^(report|transactions)$"),
        user: UserContext = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    default_start, default_end = reports.default_range()
    start = start or default_start
    end = end or default_end

    rows = await TransactionStore.list_in_range(db, user.user_id, start, end)
    columns = export.REPORT_COLUMNS if style == "report" else export.DEFAULT_COLUMNS
    filename = export.export_filename(start, end, style)
    return Response(
        content=export.to_csv(rows, columns).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@api_router.get("/categories", tags=["System"])
async def get_categories(user: UserContext = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    used = await TransactionStore.used_categories(db, user.user_id)
    dates = await TransactionStore.used_dates(db, user.user_id)
    return {
        "expense": EXPENSE_CATEGORIES,
        "income": INCOME_CATEGORIES,
        "used": used,
        "months": analytics.available_months(dates),
    }

import calendar
from datetime import date
from typing import Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.config import settings
from fintrack.schemas.analytics import ReportResponse
from fintrack.services import analytics
from fintrack.services.store import TransactionStore, parse_date


def month_start(day: date, months_back: int = 0) -> date:
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def default_range(today: Optional[date] = None) -> Tuple[date, date]:
    """Start of the month five months back through the end of this month."""
    today = today or settings.today()
    return month_start(today, settings.MONTHLY_WINDOW - 1), month_end(today)


def current_month(today: Optional[date] = None) -> Tuple[date, date]:
    today = today or settings.today()
    return month_start(today), month_end(today)


def summarize(transactions, start: date, end: date, months: Optional[int] = None) -> ReportResponse:
    """Every report series for an already fetched snapshot."""
    rows = analytics.filter_by_range(transactions, start, end)
    summary = analytics.compute_summary(rows)
    return ReportResponse(
        start=start,
        end=end,
        count=len(rows),
        summary=summary,
        savings_rate=analytics.savings_rate(summary),
        category_expenses=analytics.compute_category_expenses(rows),
        income_sources=analytics.compute_income_sources(rows),
        monthly=analytics.compute_monthly_data(rows, months or settings.MONTHLY_WINDOW),
        daily=analytics.compute_daily_trend(rows),
        top_expenses=analytics.top_expenses(rows),
    )


async def build_report(db: AsyncSession, user_id: str, start: Union[date, str, None] = None,
                       end: Union[date, str, None] = None, months: Optional[int] = None) -> ReportResponse:
    default_start, default_end = default_range()
    start_date = parse_date(start, "start") if start else default_start
    end_date = parse_date(end, "end") if end else default_end

    transactions = await TransactionStore.list_in_range(db, user_id, start_date, end_date)
    return summarize(transactions, start_date, end_date, months)

"""Pure aggregation over an in-memory snapshot of transactions.

Nothing here touches the store. Every function takes a sequence of objects
exposing ``type``, ``amount``, ``category`` and ``date`` (ORM rows and
``TransactionResponse`` both qualify), makes a single pass and returns new
values without mutating the input.
"""

from datetime import date
from decimal import Decimal, ROUND_FLOOR
from typing import Dict, Iterable, List, Optional, Sequence, Union

from fintrack.core.categories import category_color
from fintrack.schemas.analytics import CategoryBucket, DailyBucket, ExpenseItem, MonthBucket, Summary

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DateLike = Union[date, str]

ZERO = Decimal("0")


def _iso(value: DateLike) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


def _amount(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def filter_by_range(transactions: Iterable, start: DateLike, end: DateLike) -> list:
    """Keep transactions with ``start <= date <= end``, preserving order.

    ISO dates sort lexicographically in calendar order, so comparing the
    ``YYYY-MM-DD`` strings is enough.
    """
    lo, hi = _iso(start), _iso(end)
    return [t for t in transactions if lo <= _iso(t.date) <= hi]


def filter_transactions(transactions: Iterable, category: Optional[str] = None, month: Optional[str] = None) -> list:
    """Category equality and ``YYYY-MM`` month filters; ``None`` or ``"all"`` disables one."""
    if category == "all":
        category = None
    if month == "all":
        month = None
    result = []
    for t in transactions:
        if category is not None and t.category != category:
            continue
        if month is not None and not _iso(t.date).startswith(month):
            continue
        result.append(t)
    return result


def compute_summary(transactions: Iterable) -> Summary:
    total_income = ZERO
    total_expense = ZERO
    for t in transactions:
        if t.type == "income":
            total_income += _amount(t.amount)
        elif t.type == "expense":
            total_expense += _amount(t.amount)

    balance = total_income - total_expense
    return Summary(
        total_income=total_income,
        total_expense=total_expense,
        balance=balance,
        savings=balance,
    )


def savings_rate(summary: Summary) -> int:
    """Whole-percent share of income kept. Halves round toward +infinity, so -2.5 gives -2."""
    if summary.total_income <= 0:
        return 0
    rate = summary.balance * 100 / summary.total_income
    return int((rate + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def _buckets(totals: Dict[str, Decimal]) -> List[CategoryBucket]:
    return [CategoryBucket(name=name, value=value, color=category_color(name)) for name, value in totals.items()]


def compute_category_expenses(transactions: Iterable) -> List[CategoryBucket]:
    """Expense totals per category in first-seen order."""
    totals: Dict[str, Decimal] = {}
    for t in transactions:
        if t.type != "expense":
            continue
        totals[t.category] = totals.get(t.category, ZERO) + _amount(t.amount)
    return _buckets(totals)


def compute_income_sources(transactions: Iterable) -> List[CategoryBucket]:
    """Income totals keyed by ``source``, or by ``category`` when the row has none."""
    totals: Dict[str, Decimal] = {}
    for t in transactions:
        if t.type != "income":
            continue
        key = getattr(t, "source", None) or t.category
        totals[key] = totals.get(key, ZERO) + _amount(t.amount)
    return _buckets(totals)


def compute_monthly_data(transactions: Iterable, months: int = 6) -> List[MonthBucket]:
    """Income/expense per ``YYYY-MM``, ascending, limited to the latest ``months``."""
    stats: Dict[str, Dict[str, Decimal]] = {}
    for t in transactions:
        key = _iso(t.date)[:7]
        if key not in stats:
            stats[key] = {"income": ZERO, "expense": ZERO}
        if t.type == "income":
            stats[key]["income"] += _amount(t.amount)
        else:
            stats[key]["expense"] += _amount(t.amount)

    keys = sorted(stats.keys())
    if months > 0:
        keys = keys[-months:]
    return [
        MonthBucket(
            month=MONTH_NAMES[int(k[5:7]) - 1],
            key=k,
            income=stats[k]["income"],
            expense=stats[k]["expense"],
        )
        for k in keys
    ]


def compute_daily_trend(transactions: Iterable) -> List[DailyBucket]:
    stats: Dict[str, Dict[str, Decimal]] = {}
    for t in transactions:
        day = _iso(t.date)
        if day not in stats:
            stats[day] = {"income": ZERO, "expense": ZERO}
        stats[day]["income" if t.type == "income" else "expense"] += _amount(t.amount)
    return [DailyBucket(date=d, income=v["income"], expense=v["expense"]) for d, v in sorted(stats.items())]


def category_totals(buckets: Sequence[CategoryBucket]) -> Dict[str, Decimal]:
    return {b.name: b.value for b in buckets}


def top_expenses(transactions: Iterable, limit: int = 6) -> List[ExpenseItem]:
    """The ``limit`` largest expenses, biggest first; equal amounts keep input order."""
    expenses = [t for t in transactions if t.type == "expense"]
    expenses.sort(key=lambda t: _amount(t.amount), reverse=True)
    return [
        ExpenseItem(
            id=getattr(t, "id", None),
            date=_iso(t.date),
            category=t.category,
            description=getattr(t, "description", None) or "",
            amount=_amount(t.amount),
        )
        for t in expenses[:max(limit, 0)]
    ]


def available_months(transactions: Iterable) -> List[str]:
    """Distinct ``YYYY-MM`` keys, newest first. Feeds the month filter."""
    return sorted({_iso(t.date)[:7] for t in transactions}, reverse=True)

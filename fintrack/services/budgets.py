import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Mapping, Optional, Union

from sqlalchemy import select, asc
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.database import backend_call
from fintrack.core.errors import NotFoundError
from fintrack.models.transaction import Budget
from fintrack.schemas.budget import BudgetOverview, BudgetSet, BudgetStatus
from fintrack.services import analytics
from fintrack.services.store import TransactionStore, validate_payload, require_user

logger = logging.getLogger(__name__)

OVERALL = "Overall"

_NATIVE_UPSERT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _status(category: str, limit, spent) -> BudgetStatus:
    limit = Decimal(str(limit)) if not isinstance(limit, Decimal) else limit
    spent = Decimal(str(spent)) if not isinstance(spent, Decimal) else spent
    if limit > 0:
        pct = int((spent * 100 / limit).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        pct = 0
    return BudgetStatus(
        category=category,
        limit=limit,
        spent=spent,
        percent_used=pct,
        exceeded=spent > limit,
        remaining=limit - spent,
    )


def evaluate(budgets: Iterable, category_totals: Mapping[str, Decimal]) -> List[BudgetStatus]:
    """Compare each budget's limit with what was spent in its category.

    ``budgets`` are rows (or anything with ``category`` and ``limit_amount``);
    ``category_totals`` maps category to spent amount. Output follows the
    budgets' order.
    """
    return [
        _status(b.category, b.limit_amount, category_totals.get(b.category, Decimal("0")))
        for b in budgets
    ]


def evaluate_overall(total_limit, total_spent) -> BudgetStatus:
    return _status(OVERALL, total_limit, total_spent)


class BudgetService:
    @staticmethod
    async def list_budgets(db: AsyncSession, user_id: str) -> list[Budget]:
        require_user(user_id)
        query = select(Budget).where(Budget.user_id == user_id).order_by(asc(Budget.category))
        async with backend_call(db, "list budgets"):
            result = await db.execute(query)
            return list(result.scalars().all())

    @staticmethod
    async def upsert_budget(db: AsyncSession, user_id: str, category: str, limit_amount) -> Budget:
        """Insert or update the single budget row for ``(user_id, category)``.

        SQLite and PostgreSQL get one ``INSERT .. ON CONFLICT DO UPDATE``;
        other backends fall back to lookup-then-write, retried once as an
        update when the unique constraint rejects a concurrent insert.
        """
        require_user(user_id)
        data = validate_payload(BudgetSet, {"category": category, "limit_amount": limit_amount})
        category = data.category

        insert = _NATIVE_UPSERT.get(db.get_bind().dialect.name)
        async with backend_call(db, "upsert budget"):
            if insert is not None:
                stmt = insert(Budget).values(user_id=user_id, category=category, limit_amount=data.limit_amount)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[Budget.user_id, Budget.category],
                    set_={"limit_amount": stmt.excluded.limit_amount},
                )
                await db.execute(stmt)
                await db.commit()
            else:
                await BudgetService._lookup_then_write(db, user_id, category, data.limit_amount)

            result = await db.execute(
                select(Budget)
                .where(Budget.user_id == user_id, Budget.category == category)
                .execution_options(populate_existing=True)
            )
            budget = result.scalar_one()

        logger.info("Budget for %s/%s set to %s", user_id, category, data.limit_amount)
        return budget

    @staticmethod
    async def _lookup_then_write(db: AsyncSession, user_id: str, category: str, limit_amount: Decimal) -> None:
        lookup = select(Budget).where(Budget.user_id == user_id, Budget.category == category)
        existing = (await db.execute(lookup)).scalar_one_or_none()
        if existing is not None:
            existing.limit_amount = limit_amount
            await db.commit()
            return
        try:
            db.add(Budget(user_id=user_id, category=category, limit_amount=limit_amount))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            existing = (await db.execute(lookup)).scalar_one()
            existing.limit_amount = limit_amount
            await db.commit()

    @staticmethod
    async def delete_budget(db: AsyncSession, budget_id: str, user_id: Optional[str] = None) -> None:
        async with backend_call(db, "get budget"):
            budget = await db.get(Budget, budget_id)
        if budget is None or (user_id is not None and budget.user_id != user_id):
            raise NotFoundError("Budget", budget_id)
        async with backend_call(db, "delete budget"):
            await db.delete(budget)
            await db.commit()
        logger.info("Deleted budget %s", budget_id)

    @staticmethod
    async def budget_overview(db: AsyncSession, user_id: str, start: Union[date, str], end: Union[date, str],
                              overall_limit=None) -> BudgetOverview:
        """Stored limits against the expenses recorded in ``[start, end]``.

        Without ``overall_limit`` the overall line sums the budgeted rows.
        An explicit ``overall_limit`` is compared with every expense in range.
        """
        budgets = await BudgetService.list_budgets(db, user_id)
        transactions = await TransactionStore.list_in_range(db, user_id, start, end)

        totals = analytics.category_totals(analytics.compute_category_expenses(transactions))
        statuses = evaluate(budgets, totals)

        if overall_limit is None:
            # both sides cover budgeted categories only
            overall_limit = sum((s.limit for s in statuses), Decimal("0"))
            total_spent = sum((s.spent for s in statuses), Decimal("0"))
        else:
            total_spent = analytics.compute_summary(transactions).total_expense

        return BudgetOverview(
            start=start,
            end=end,
            budgets=statuses,
            overall=evaluate_overall(overall_limit, total_spent),
        )

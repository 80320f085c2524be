import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.config import settings
from fintrack.core.errors import ValidationError
from fintrack.models.transaction import Transaction
from fintrack.services.budgets import BudgetService
from fintrack.services.store import TransactionStore

logger = logging.getLogger(__name__)

DEMO_BUDGETS = {
    "Food": Decimal("800"),
    "Travel": Decimal("300"),
    "Shopping": Decimal("600"),
    "Rent": Decimal("1200"),
    "Others": Decimal("200"),
}


def load_demo_frame(csv_path: Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    df = df.rename(columns=str.strip)
    for col in ("description", "source"):
        if col not in df.columns:
            df[col] = ""
    return df.sort_values("date", kind="stable").reset_index(drop=True)


async def seed_data(db: AsyncSession, user_id: Optional[str] = None, csv_path: Optional[Path] = None) -> int:
    """Load the demo transactions and budgets for one user if they have none yet."""
    user_id = user_id or settings.DEMO_USER_ID
    csv_path = Path(csv_path or settings.DEMO_DATA_PATH)

    result = await db.execute(select(func.count(Transaction.id)).where(Transaction.user_id == user_id))
    count = result.scalar()
    if count > 0:
        logger.info("User %s already has %d transactions. Skipping seed.", user_id, count)
        return 0

    if not csv_path.exists():
        logger.warning("Demo data %s not found. Skipping seed.", csv_path)
        return 0

    logger.info("Reading demo transactions from %s", csv_path)
    df = load_demo_frame(csv_path)

    added = 0
    for row in df.to_dict(orient="records"):
        payload = {
            "date": row["date"],
            "type": row["type"],
            "amount": row["amount"],
            "category": row["category"],
            "description": row["description"],
            "source": row["source"] or None,
        }
        try:
            await TransactionStore.create(db, user_id, payload)
        except ValidationError as e:
            logger.warning("Skipping demo row %s: %s", row, e)
            continue
        added += 1

    for category, limit in DEMO_BUDGETS.items():
        await BudgetService.upsert_budget(db, user_id, category, limit)

    logger.info("Seeded %d transactions for %s.", added, user_id)
    return added

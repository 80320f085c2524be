import logging
from datetime import date
from typing import Any, Mapping, Optional, Type, TypeVar, Union

import pydantic
from sqlalchemy import select, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.config import settings
from fintrack.core.categories import CATEGORY_VOCABULARY, is_known_category
from fintrack.core.database import backend_call
from fintrack.core.errors import NotFoundError, ValidationError
from fintrack.models.transaction import Transaction
from fintrack.schemas.transaction import TransactionCreate, TransactionUpdate

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

FIELD_MESSAGES = {
    "amount": "Enter a positive amount",
    "limit_amount": "Enter a non-negative amount",
    "category": "Select a category",
    "date": "Enter a valid date (YYYY-MM-DD)",
    "type": "Type must be income or expense",
}

REQUIRED_ON_UPDATE = ("type", "amount", "category", "date", "description")


def validate_payload(model: Type[ModelT], payload: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Parse ``payload`` into ``model``, reporting failures as ``ValidationError``."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        errors = {}
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "__root__"
            if err["type"] == "extra_forbidden":
                errors[field] = f"{field} cannot be changed"
            else:
                errors.setdefault(field, FIELD_MESSAGES.get(field, err["msg"]))
        raise ValidationError(errors) from exc


def parse_date(value: Union[date, str], field: str = "date") -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError({field: FIELD_MESSAGES["date"]}) from None


def check_vocabulary(tx_type: str, category: str) -> None:
    if settings.ENFORCE_CATEGORY_VOCABULARY and not is_known_category(tx_type, category):
        allowed = ", ".join(CATEGORY_VOCABULARY.get(tx_type, []))
        raise ValidationError({"category": f"Choose one of: {allowed}"})


def require_user(user_id: str) -> None:
    if not user_id:
        raise ValidationError({"user_id": "A signed-in user is required"})


class TransactionStore:
    """CRUD over the ``transactions`` table. One round-trip per call, no retries."""

    @staticmethod
    async def list_transactions(db: AsyncSession, user_id: str) -> list[Transaction]:
        require_user(user_id)
        query = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(desc(Transaction.date), desc(Transaction.created_at))
        )
        async with backend_call(db, "list transactions"):
            result = await db.execute(query)
            return list(result.scalars().all())

    @staticmethod
    async def list_in_range(db: AsyncSession, user_id: str, start: Union[date, str], end: Union[date, str]) -> list[Transaction]:
        require_user(user_id)
        start_date = parse_date(start, "start")
        end_date = parse_date(end, "end")
        query = (
            select(Transaction)
            .where(
                Transaction.user_id == user_id,
                Transaction.date >= start_date,
                Transaction.date <= end_date,
            )
            .order_by(desc(Transaction.date), desc(Transaction.created_at))
        )
        async with backend_call(db, "list transactions in range"):
            result = await db.execute(query)
            return list(result.scalars().all())

    @staticmethod
    async def used_categories(db: AsyncSession, user_id: str) -> list[str]:
        require_user(user_id)
        query = (
            select(Transaction.category)
            .where(Transaction.user_id == user_id)
            .distinct()
            .order_by(asc(Transaction.category))
        )
        async with backend_call(db, "list used categories"):
            result = await db.execute(query)
            return list(result.scalars().all())

    @staticmethod
    async def used_dates(db: AsyncSession, user_id: str) -> list:
        """Distinct dates as rows exposing ``.date``, enough for month lists."""
        require_user(user_id)
        query = select(Transaction.date).where(Transaction.user_id == user_id).distinct()
        async with backend_call(db, "list used dates"):
            result = await db.execute(query)
            return list(result.all())

    @staticmethod
    async def get(db: AsyncSession, transaction_id: str, user_id: Optional[str] = None) -> Transaction:
        async with backend_call(db, "get transaction"):
            trx = await db.get(Transaction, transaction_id)
        # rows of other users are indistinguishable from missing ones
        if trx is None or (user_id is not None and trx.user_id != user_id):
            raise NotFoundError("Transaction", transaction_id)
        return trx

    @staticmethod
    async def create(db: AsyncSession, user_id: str, payload: Union[TransactionCreate, Mapping[str, Any]]) -> Transaction:
        require_user(user_id)
        data = validate_payload(TransactionCreate, payload)
        check_vocabulary(data.type, data.category)

        description = data.description.strip()
        if not description and data.type == "income":
            description = f"Income from {data.category}"

        db_obj = Transaction(
            user_id=user_id,
            type=data.type,
            amount=data.amount,
            category=data.category,
            description=description,
            source=data.source,
            date=data.date,
        )
        async with backend_call(db, "create transaction"):
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)

        logger.info("Created %s %s for user %s (%s)", db_obj.type, db_obj.id, user_id, db_obj.category)
        return db_obj

    @staticmethod
    async def update(db: AsyncSession, transaction_id: str, changes: Union[TransactionUpdate, Mapping[str, Any]],
                     user_id: Optional[str] = None) -> Transaction:
        patch = validate_payload(TransactionUpdate, changes).model_dump(exclude_unset=True)
        cleared = {f: "This field cannot be empty" for f in REQUIRED_ON_UPDATE if f in patch and patch[f] is None}
        if cleared:
            raise ValidationError(cleared)

        trx = await TransactionStore.get(db, transaction_id, user_id)
        if not patch:
            return trx

        check_vocabulary(patch.get("type", trx.type), patch.get("category", trx.category))
        for field, value in patch.items():
            setattr(trx, field, value)

        async with backend_call(db, "update transaction"):
            await db.commit()
            await db.refresh(trx)

        logger.info("Updated transaction %s: %s", transaction_id, ", ".join(sorted(patch)))
        return trx

    @staticmethod
    async def delete(db: AsyncSession, transaction_id: str, user_id: Optional[str] = None) -> None:
        trx = await TransactionStore.get(db, transaction_id, user_id)
        async with backend_call(db, "delete transaction"):
            await db.delete(trx)
            await db.commit()
        logger.info("Deleted transaction %s", transaction_id)

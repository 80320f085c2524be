from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from fintrack.config import settings
from fintrack.core.errors import BackendError, NotFoundError, ValidationError
from fintrack.services.store import TransactionStore


def _payload(**overrides):
    data = {
        "type": "expense",
        "amount": "350",
        "category": "Food",
        "description": "Groceries",
        "date": "2025-02-03",
    }
    data.update(overrides)
    return data


def test_create_assigns_id_and_created_at(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            return await TransactionStore.create(db, "alice", _payload())

    trx = asyncio.run(scenario())
    assert trx.id
    assert trx.created_at is not None
    assert trx.user_id == "alice"
    assert trx.amount == Decimal("350")
    assert trx.date == date(2025, 2, 3)


def test_income_without_description_gets_default(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            return await TransactionStore.create(db, "alice", _payload(type="income", category="Salary", description=""))

    assert asyncio.run(scenario()).description == "Income from Salary"


@pytest.mark.parametrize(
    "overrides, field, message",
    [
        ({"amount": "0"}, "amount", "Enter a positive amount"),
        ({"amount": "-5"}, "amount", "Enter a positive amount"),
        ({"category": ""}, "category", "Select a category"),
        ({"date": 1738540800}, "date", "Enter a valid date (YYYY-MM-DD)"),
        ({"date": "2025-02-03T00:00:00"}, "date", "Enter a valid date (YYYY-MM-DD)"),
        ({"date": "2025-13-40"}, "date", "Enter a valid date (YYYY-MM-DD)"),
        ({"date": None}, "date", "Enter a valid date (YYYY-MM-DD)"),
        ({"type": "transfer"}, "type", "Type must be income or expense"),
    ],
)
def test_create_rejects_invalid_input(session_factory, overrides, field, message) -> None:
    async def scenario():
        async with session_factory() as db:
            with pytest.raises(ValidationError) as exc:
                await TransactionStore.create(db, "alice", _payload(**overrides))
            return exc.value, await TransactionStore.list_transactions(db, "alice")

    error, stored = asyncio.run(scenario())
    assert error.errors[field] == message
    assert stored == []


def test_list_is_newest_first_and_per_user(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            for day in ("2025-02-03", "2025-02-10", "2025-01-20"):
                await TransactionStore.create(db, "alice", _payload(date=day))
            await TransactionStore.create(db, "bob", _payload(date="2025-03-01"))
            return await TransactionStore.list_transactions(db, "alice")

    rows = asyncio.run(scenario())
    assert [t.date.isoformat() for t in rows] == ["2025-02-10", "2025-02-03", "2025-01-20"]


def test_list_in_range_is_inclusive(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            for day in ("2025-01-31", "2025-02-01", "2025-02-14", "2025-02-28", "2025-03-01"):
                await TransactionStore.create(db, "alice", _payload(date=day))
            return await TransactionStore.list_in_range(db, "alice", "2025-02-01", date(2025, 2, 28))

    rows = asyncio.run(scenario())
    assert [t.date.isoformat() for t in rows] == ["2025-02-28", "2025-02-14", "2025-02-01"]


def test_list_in_range_rejects_bad_bounds(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            await TransactionStore.list_in_range(db, "alice", "02/01/2025", "2025-02-28")

    with pytest.raises(ValidationError) as exc:
        asyncio.run(scenario())
    assert "start" in exc.value.errors


def test_update_replaces_only_given_fields(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            trx = await TransactionStore.create(db, "alice", _payload())
            updated = await TransactionStore.update(db, trx.id, {"amount": "420.75", "category": "Shopping"}, "alice")
            return trx.id, updated

    trx_id, updated = asyncio.run(scenario())
    assert updated.id == trx_id
    assert updated.amount == Decimal("420.75")
    assert updated.category == "Shopping"
    assert updated.description == "Groceries"
    assert updated.date == date(2025, 2, 3)


def test_update_refuses_identity_fields_and_nulls(session_factory) -> None:
    async def scenario(changes):
        async with session_factory() as db:
            trx = await TransactionStore.create(db, "alice", _payload())
            await TransactionStore.update(db, trx.id, changes)

    with pytest.raises(ValidationError) as exc:
        asyncio.run(scenario({"user_id": "mallory"}))
    assert exc.value.errors == {"user_id": "user_id cannot be changed"}

    with pytest.raises(ValidationError) as exc:
        asyncio.run(scenario({"amount": None}))
    assert "amount" in exc.value.errors


def test_other_users_rows_are_not_found(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            trx = await TransactionStore.create(db, "alice", _payload())
            with pytest.raises(NotFoundError):
                await TransactionStore.get(db, trx.id, "bob")
            with pytest.raises(NotFoundError):
                await TransactionStore.update(db, trx.id, {"amount": "1"}, "bob")
            with pytest.raises(NotFoundError):
                await TransactionStore.delete(db, trx.id, "bob")
            return (await TransactionStore.get(db, trx.id, "alice")).amount

    assert asyncio.run(scenario()) == Decimal("350")


def test_delete(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            trx = await TransactionStore.create(db, "alice", _payload())
            await TransactionStore.delete(db, trx.id, "alice")
            with pytest.raises(NotFoundError):
                await TransactionStore.delete(db, trx.id, "alice")
            return await TransactionStore.list_transactions(db, "alice")

    assert asyncio.run(scenario()) == []


def test_duplicate_create_produces_two_rows(session_factory) -> None:
    async def scenario():
        async with session_factory() as db:
            await TransactionStore.create(db, "alice", _payload())
            await TransactionStore.create(db, "alice", _payload())
            return await TransactionStore.list_transactions(db, "alice")

    assert len(asyncio.run(scenario())) == 2


def test_vocabulary_enforcement_is_opt_in(session_factory, monkeypatch) -> None:
    async def scenario():
        async with session_factory() as db:
            return await TransactionStore.create(db, "alice", _payload(category="Gadgets"))

    assert asyncio.run(scenario()).category == "Gadgets"

    monkeypatch.setattr(settings, "ENFORCE_CATEGORY_VOCABULARY", True)
    with pytest.raises(ValidationError) as exc:
        asyncio.run(scenario())
    assert exc.value.errors["category"].startswith("Choose one of: Food")


def test_backend_failure_surfaces_as_backend_error(tmp_path) -> None:
    async def scenario():
        # tables were never created, so every query fails in the driver
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}", poolclass=NullPool)
        try:
            async with async_sessionmaker(engine, expire_on_commit=False)() as db:
                await TransactionStore.list_transactions(db, "alice")
        finally:
            await engine.dispose()

    with pytest.raises(BackendError) as exc:
        asyncio.run(scenario())
    assert "no such table" in str(exc.value)
    assert exc.value.__cause__ is not None

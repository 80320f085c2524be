from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from fintrack.core.database import init_db


def make_trx(type_: str, amount, category: str, day: str, description: str = "", source=None):
    return SimpleNamespace(
        type=type_,
        amount=Decimal(str(amount)),
        category=category,
        date=date.fromisoformat(day),
        description=description,
        source=source,
    )


@pytest.fixture
def engine(tmp_path):
    # NullPool keeps no connection bound to a finished event loop between asyncio.run calls
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'finance.db'}", poolclass=NullPool)
    asyncio.run(init_db(eng))
    yield eng
    asyncio.run(eng.dispose())


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from fintrack.config import settings
from fintrack.core.errors import BackendError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, future=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


def _ensure_sqlite_dir(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite" or not parsed.database or parsed.database == ":memory:":
        return
    Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create the transactions and budgets tables if they are missing."""
    # registers the tables on Base.metadata
    from fintrack.models import transaction  # noqa: F401

    target = bind or engine
    _ensure_sqlite_dir(str(target.url))
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready at %s", target.url.render_as_string(hide_password=True))


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def backend_call(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """Run one store round-trip, surfacing driver failures as ``BackendError``.

    The session is rolled back and the backend's message is kept as is.
    Nothing is retried.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        await db.rollback()
        message = str(getattr(exc, "orig", None) or exc)
        logger.error("Store call '%s' failed: %s", action, message)
        raise BackendError(message) from exc

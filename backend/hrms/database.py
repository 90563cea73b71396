"""Async engine, per-request sessions and schema bootstrap for the HRMS store."""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from . import models
from .config import get_settings


def _connect_args(database_url: str) -> dict:
    # aiosqlite hands the connection to a worker thread
    if database_url.startswith("sqlite+"):
        return {"check_same_thread": False}
    return {}


settings = get_settings()
engine = create_async_engine(
    settings.database_url,
    future=True,
    echo=False,
    connect_args=_connect_args(settings.database_url),
)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def create_schema(bind: AsyncEngine = engine) -> None:
    """Create any missing users, leave, timesheet, evaluation and notification tables."""

    async with bind.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; it is closed when the request ends."""

    async with AsyncSessionLocal() as session:
        yield session

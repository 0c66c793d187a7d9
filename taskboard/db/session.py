"""Database engine, session factory, and schema bootstrap."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard import models as _models
from taskboard.core.config import settings
from taskboard.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

# Import model modules so SQLModel metadata is fully registered at startup.
_MODEL_REGISTRY = _models

logger = get_logger(__name__)


def normalize_database_url(database_url: str) -> str:
    """Select the async sqlite driver when a plain sqlite URL is configured."""
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme == "sqlite":
        return f"sqlite+aiosqlite://{rest}"
    return database_url


def build_engine(database_url: str | None = None) -> AsyncEngine:
    return create_async_engine(
        normalize_database_url(database_url or settings.database_url),
        pool_pre_ping=True,
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create every table that does not exist yet."""
    logger.info("db.schema.create_all", extra={"url": str(engine.url)})
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def session_scope(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Yield a session, rolling back anything left uncommitted."""
    async with session_maker() as session:
        try:
            yield session
        finally:
            in_txn = False
            try:
                in_txn = bool(session.in_transaction())
            except SQLAlchemyError:
                logger.exception("db.session.inspect_failed")
            if in_txn:
                try:
                    await session.rollback()
                except SQLAlchemyError:
                    logger.exception("db.session.rollback_failed")

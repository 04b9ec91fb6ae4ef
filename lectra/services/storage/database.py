"""
Async SQLAlchemy engine, session factory, and store lifecycle helpers.

The store is an explicitly constructed :class:`StoreClient` rather than
module-level state: ``init_store()`` builds it once at application startup,
``teardown_store()`` disposes it, and everything else receives it by
reference (``app.state.store`` in the API layer).
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lectra.core.config import Settings, get_settings
from lectra.services.storage.blob_store import BaseBlobStore, create_blob_store


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


@dataclass
class StoreClient:
    """Handle to the row store (engine + sessions) and the audio blob store."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    blobs: BaseBlobStore

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield an ``AsyncSession`` that commits on success, rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet (idempotent)."""
    # Register ORM models on Base.metadata before create_all
    from lectra.services.storage import models_db  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _ensure_sqlite_dir(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def init_store(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    blob_store: BaseBlobStore | None = None,
) -> StoreClient:
    """Build a :class:`StoreClient` and make sure the schema exists.

    Args:
        settings: Settings supplying ``database_url`` and storage config.
        engine: Optional engine override (used in tests with in-memory SQLite).
        blob_store: Optional blob store override.

    Returns:
        A ready-to-use ``StoreClient``.
    """
    settings = settings or get_settings()
    if engine is None:
        _ensure_sqlite_dir(settings.database_url)
        engine = create_async_engine(settings.database_url, echo=False)
    await create_tables(engine)
    return StoreClient(
        engine=engine,
        session_factory=async_sessionmaker(engine, expire_on_commit=False),
        blobs=blob_store or create_blob_store(settings.storage_provider, settings),
    )


async def teardown_store(client: StoreClient) -> None:
    """Dispose the engine owned by *client*."""
    await client.engine.dispose()

"""Database handle management."""
from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from pathlib import Path

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..models.base import Base

logger = logging.getLogger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ANN001 - DBAPI hook
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class RecordStore:
    """Owned handle over the SQLite database holding calls, transcripts and insights.

    Lifecycle is ``open`` → serve → ``close``. Every write happens inside a
    ``session.begin()`` block whose commit returns only once SQLite has synced
    the change to disk.
    """

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self) -> None:
        """Create the storage directory, the engine and the schema."""

        if self._engine is not None:
            return

        database = make_url(self.database_url).database
        if database and database != ":memory:":
            # Unrecoverable at startup; let it propagate.
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        engine = create_async_engine(self.database_url, echo=False)
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self._engine = engine
        self._sessionmaker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
        logger.info("Record store opened at %s", self.database_url)

    def session(self) -> AsyncSession:
        """Return a new session bound to the store."""

        if self._sessionmaker is None:
            raise RuntimeError("Record store is not open")
        return self._sessionmaker()

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""

        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Record store closed")


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to provide an async session from the app's store."""

    store: RecordStore = request.app.state.store
    async with store.session() as session:
        yield session

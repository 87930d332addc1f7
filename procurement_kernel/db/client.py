"""
Module: procurement_kernel.db.client
Responsibility: Own the SQLAlchemy async engine and hand out sessions.
    The client is constructed explicitly by the composition root and passed
    to the gateways and repositories that need it; there is no module-level
    engine.
Architecture position: Kernel > DB.  MUST NOT import from services or
    outer layers.

Invariants enforced:
    - PostgreSQL through the psycopg async driver is the supported backend.
    - Connection pooling with pre-ping to handle stale connections.
    - ``session()`` before ``connect()`` (or after ``close()``) raises
      DataStoreNotConnectedError.

Failure modes:
    - DataStoreNotConnectedError when no engine is open.
    - Driver errors (``sqlalchemy.exc.DBAPIError``) propagate from session
      use; callers decide whether to convert them.

Usage:
    async with DataStoreClient(database_url) as client:
        async with client.session() as session:
            rows = await session.execute(text("SELECT 1"))
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from procurement_kernel.exceptions import DataStoreNotConnectedError
from procurement_kernel.logging_config import get_logger

logger = get_logger("db.client")


class DataStoreClient:
    """Explicitly constructed data store client with an owned lifecycle."""

    def __init__(
        self,
        database_url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
    ) -> None:
        self._database_url = database_url
        self._engine_options: dict[str, Any] = {
            "echo": echo,
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": pool_pre_ping,
            "pool_timeout": pool_timeout,
            "pool_recycle": pool_recycle,
        }
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> AsyncEngine:
        """
        Create the engine and session factory.

        Idempotent: a second call returns the engine already open.
        No connection is made until the first session is used.
        """
        if self._engine is not None:
            return self._engine

        self._engine = create_async_engine(self._database_url, **self._engine_options)
        self._session_factory = async_sessionmaker(
            bind=self._engine, expire_on_commit=False
        )
        logger.info(
            "data_store_connected",
            extra={
                "dialect": self._engine.dialect.name,
                "pool_size": self._engine_options["pool_size"],
                "max_overflow": self._engine_options["max_overflow"],
            },
        )
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provide a transactional scope around a series of operations.

        On normal exit the session is committed; on exception it is rolled
        back and the exception is re-raised.
        """
        if self._session_factory is None:
            raise DataStoreNotConnectedError()

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.warning("transaction_rolled_back", exc_info=True)
            raise
        finally:
            await session.close()

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("data_store_closed")

    async def __aenter__(self) -> DataStoreClient:
        self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

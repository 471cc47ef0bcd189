"""Database handle: engine, bounded connection pool and session management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from school_directory.config.settings import DatabaseConfig
from school_directory.models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    """SQLite ignores FOREIGN KEY clauses unless enabled per connection."""

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Explicitly constructed store handle with an init/dispose lifecycle."""

    def __init__(self, config: DatabaseConfig, *, echo: bool = False) -> None:
        self.config = config
        self.engine: AsyncEngine = self._create_engine(config, echo)
        self.session_factory = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    @staticmethod
    def _create_engine(config: DatabaseConfig, echo: bool) -> AsyncEngine:
        """Create an async engine with a bounded pool for server backends."""

        url = make_url(config.url)
        engine_options: dict[str, Any] = {
            "echo": echo,
            "pool_pre_ping": True,
        }

        is_sqlite = url.get_backend_name() == "sqlite"
        if not is_sqlite:
            # Callers queue for a connection once the pool is exhausted.
            engine_options["pool_size"] = config.pool_size
            engine_options["max_overflow"] = config.max_overflow
            engine_options["pool_timeout"] = config.pool_timeout

        engine = create_async_engine(url, **engine_options)

        if is_sqlite:
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        return engine

    async def init_models(self) -> None:
        """Create database tables if they do not exist."""

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info(
            "Ensured database tables on %s.",
            self.engine.url.render_as_string(hide_password=True),
        )

    async def ping(self) -> bool:
        """Return True when a connection can be checked out and used."""

        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Database connectivity check failed")
            return False
        return True

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """Async context manager that yields a session bound to this database."""

        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        """Dispose of the engine and release pooled connections."""

        await self.engine.dispose()
        logger.info("Database engine disposed.")


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a session from the app's database handle."""

    database: Database = request.app.state.database
    async with database.session_scope() as session:
        yield session


__all__ = ["Database", "get_session"]

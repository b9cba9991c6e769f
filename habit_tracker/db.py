from __future__ import annotations
import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlmodel import SQLModel
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from loguru import logger

from .config import settings
from .errors import DatabaseUnavailable


class Database:
    """
    Owns the engine and session factory for one application instance.

    Passed explicitly (app.state, scripts, tests) instead of living in a
    module-level global.
    """

    def __init__(
        self,
        url: str,
        *,
        retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        **engine_kwargs: Any,
    ):
        self.url = url
        self.retries = max(1, retries if retries is not None else settings.DB_CONNECT_RETRIES)
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.DB_CONNECT_BACKOFF_SECONDS
        options = {"echo": False, "pool_pre_ping": True}
        options.update(engine_kwargs)
        self.engine = create_async_engine(url, **options)
        self.session_factory = sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(settings.DATABASE_URL)

    async def connect(self) -> None:
        """Create tables, retrying with exponential backoff."""
        from .models.habit import Habit  # noqa: F401  registers the table on SQLModel.metadata

        delay = self.backoff_seconds
        for attempt in range(1, self.retries + 1):
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(SQLModel.metadata.create_all)
                logger.info("Database tables created/verified")
                return
            except (OperationalError, InterfaceError, OSError) as e:
                if attempt == self.retries:
                    logger.error("All {} connection attempts failed: {}", self.retries, e)
                    raise DatabaseUnavailable(
                        f"Failed to connect to database after {self.retries} attempts: {e}"
                    ) from e
                logger.warning(
                    "Connection attempt {} failed: {}. Retrying in {:.1f}s", attempt, e, delay
                )
                await asyncio.sleep(delay)
                delay *= 2

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")

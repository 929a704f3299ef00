import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from smartfootball.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)


class StoreUnavailableError(RuntimeError):
    """The database could not be reached even after recreating the engine."""


class DatabasePool:
    """Owns the process-wide engine.

    The engine is created on first use and reused by every invocation that
    shares this object. ``ensure_alive`` probes it and rebuilds it once if
    the probe fails.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 5,
        command_timeout: float | None = None,
        echo: bool = False,
    ) -> None:
        if not url:
            raise ConfigurationError("Missing required settings: DATABASE_URL")
        self.url = url
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabasePool":
        settings.require("database_url")
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            command_timeout=settings.db_command_timeout_seconds,
        )

    def _build(self) -> None:
        options = {"pool_pre_ping": True, "echo": self.echo}
        # SQLite (local runs, tests) keeps the dialect's default pool
        if not self.url.startswith("sqlite"):
            options["pool_size"] = self.pool_size
        if self.url.startswith("postgresql+asyncpg") and self.command_timeout:
            options["connect_args"] = {"command_timeout": self.command_timeout}
        self._engine = create_async_engine(self.url, **options)
        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.info("Created database engine (dialect=%s)", self._engine.dialect.name)

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._build()
        return self._engine

    def session(self) -> AsyncSession:
        if self._sessionmaker is None:
            self._build()
        return self._sessionmaker()

    async def _probe(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def ensure_alive(self) -> None:
        try:
            await self._probe()
            return
        except (OSError, SQLAlchemyError):
            logger.warning("Database probe failed, recreating engine", exc_info=True)
        await self.dispose()
        try:
            await self._probe()
        except (OSError, SQLAlchemyError) as exc:
            raise StoreUnavailableError(f"Database unreachable: {exc}") from exc

    async def create_schema(self) -> None:
        from smartfootball.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None


def dialect_insert(session: AsyncSession, model):
    """``INSERT`` construct with ``on_conflict_do_update`` for the bound backend."""
    if session.bind.dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)


def get_pool(request: Request) -> DatabasePool:
    return request.app.state.pool


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with get_pool(request).session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

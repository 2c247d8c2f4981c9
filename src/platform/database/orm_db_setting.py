"""
SQLAlchemy async engine and session management with Read-Write Separation

- Write operations (settlement, initiation, withdrawal) always use the primary
- Read operations (ticket listings, balances) use the replica when configured
- Inside a Unit of Work every statement uses the write session

Configuration:
- POSTGRES_REPLICA_SERVER / POSTGRES_REPLICA_PORT: optional read replica
- DATABASE_URL: full override, also used by the test suite
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


def engine_options(url: str) -> dict[str, Any]:
    # SQLite (tests) uses a static/null pool that rejects sizing arguments
    if url.startswith('sqlite'):
        return {'echo': False}
    return {
        'echo': False,
        'pool_size': settings.DB_POOL_SIZE_WRITE,
        'max_overflow': settings.DB_POOL_MAX_OVERFLOW,
        'pool_timeout': settings.DB_POOL_TIMEOUT,
        'pool_recycle': settings.DB_POOL_RECYCLE,
        'pool_pre_ping': settings.DB_POOL_PRE_PING,
    }


class AsyncEngineManager:
    """
    Manages SQLAlchemy async engines with event loop awareness.

    Engines are rebuilt when the running loop changes so pooled connections
    are never awaited from a foreign loop (test runners create one loop per test).
    """

    def __init__(self) -> None:
        self._write_engine: Optional[AsyncEngine] = None
        self._read_engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._write_session_maker: Optional[async_sessionmaker[AsyncSession]] = None
        self._read_session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    def get_engine(self, *, read_only: bool = False) -> AsyncEngine:
        try:
            current_loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if current_loop is not None and self._loop is not current_loop:
            if self._write_engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, rebuilding engines')
            self._write_engine = None
            self._read_engine = None
            self._write_session_maker = None
            self._read_session_maker = None
            self._loop = current_loop

        if self._write_engine is None:
            Logger.base.info('🔗 [DB] Creating write engine')
            self._write_engine = create_async_engine(
                settings.DATABASE_URL_ASYNC, **engine_options(settings.DATABASE_URL_ASYNC)
            )
        if self._read_engine is None:
            read_url = settings.DATABASE_READ_URL_ASYNC
            self._read_engine = (
                self._write_engine
                if read_url == settings.DATABASE_URL_ASYNC
                else create_async_engine(read_url, **engine_options(read_url))
            )

        return self._read_engine if read_only else self._write_engine

    def get_session_maker(self, *, read_only: bool = False) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine(read_only=read_only)
        if read_only:
            if self._read_session_maker is None:
                self._read_session_maker = async_sessionmaker(
                    engine, class_=AsyncSession, expire_on_commit=False
                )
            return self._read_session_maker

        if self._write_session_maker is None:
            self._write_session_maker = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._write_session_maker

    async def dispose(self) -> None:
        if self._read_engine is not None and self._read_engine is not self._write_engine:
            await self._read_engine.dispose()
        if self._write_engine is not None:
            await self._write_engine.dispose()
        self._write_engine = None
        self._read_engine = None
        self._write_session_maker = None
        self._read_session_maker = None


_engine_manager = AsyncEngineManager()


def get_engine(*, read_only: bool = False) -> AsyncEngine:
    return _engine_manager.get_engine(read_only=read_only)


def get_session_maker(*, read_only: bool = False) -> async_sessionmaker[AsyncSession]:
    return _engine_manager.get_session_maker(read_only=read_only)


async def dispose_engines() -> None:
    await _engine_manager.dispose()


class Base(DeclarativeBase):
    pass


async def create_db_and_tables() -> None:
    """Create tables if missing (local dev; deployed databases run Alembic)"""
    # Register every mapped model on Base.metadata
    import src.service.settlement.driven_adapter.model  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: write session (rolled back and closed on exit)"""
    async with get_session_maker(read_only=False)() as session:
        yield session


class Database:
    """Session provider for repositories wired through the DI container"""

    def __init__(self, *, read_only: bool = False) -> None:
        self._read_only = read_only

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with get_session_maker(read_only=self._read_only)() as session:
            yield session

"""
SQLAlchemy async engine and session management

This module provides:
1. AsyncEngineManager: event-loop-aware engine/session maker
2. Base: declarative base shared by every ORM model
3. get_async_session: session provider for FastAPI Depends injection
4. Database: session factory for dependency-injector providers
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
from sqlalchemy.pool import StaticPool

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# =============================================================================
# Event-loop-aware Engine Manager
# =============================================================================


class AsyncEngineManager:
    """
    Manages the SQLAlchemy async engine with event loop awareness.

    Ensures the engine is always bound to the current event loop to prevent
    "Task got Future attached to a different loop" errors (test runners start
    a new loop per test).
    """

    def __init__(self, *, url: str | None = None) -> None:
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def url(self) -> str:
        return self._url or settings.DATABASE_URL_ASYNC

    def get_engine(self) -> AsyncEngine:
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop running, create engine without loop tracking
            if self._engine is None:
                self._engine = self._create_engine()
            return self._engine

        if self._loop is not current_loop:
            if self._engine is not None:
                Logger.base.warning('🔄 [DB] Event loop changed, disposing old engine...')
                self._session_maker = None
            Logger.base.info(f'🔗 [DB] Creating engine for event loop {id(current_loop)}')
            self._engine = self._create_engine()
            self._loop = current_loop

        assert self._engine is not None
        return self._engine

    def get_session_maker(self) -> async_sessionmaker[AsyncSession]:
        engine = self.get_engine()
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_maker

    def _create_engine(self) -> AsyncEngine:
        kwargs: dict[str, Any] = {'echo': False}
        if self.url.startswith('sqlite'):
            # Single shared connection so in-memory databases survive across sessions
            kwargs |= {
                'poolclass': StaticPool,
                'connect_args': {'check_same_thread': False},
            }
        else:
            kwargs |= {
                'pool_size': settings.DB_POOL_SIZE,
                'max_overflow': settings.DB_POOL_MAX_OVERFLOW,
                'pool_timeout': settings.DB_POOL_TIMEOUT,
                'pool_recycle': settings.DB_POOL_RECYCLE,
                'pool_pre_ping': settings.DB_POOL_PRE_PING,
            }
        return create_async_engine(self.url, **kwargs)


# Global engine manager
_engine_manager = AsyncEngineManager()


def get_engine() -> AsyncEngine:
    return _engine_manager.get_engine()


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return _engine_manager.get_session_maker()


# =============================================================================
# Base Model
# =============================================================================


class Base(DeclarativeBase):
    pass


# =============================================================================
# Table Creation
# =============================================================================


async def create_db_and_tables(engine: AsyncEngine | None = None) -> None:
    """Create database tables if they don't exist"""
    # Importing the models registers them on Base.metadata
    from src.platform.database import models  # noqa: F401

    current_engine = engine or get_engine()
    try:
        async with current_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    except Exception as e:
        error_msg = str(e).lower()
        if any(
            keyword in error_msg
            for keyword in ['already exists', 'duplicate key', 'unique constraint']
        ):
            Logger.base.info('Tables already exist, skipping creation')
        else:
            Logger.base.error(f'Error creating tables: {e}')
            raise


# =============================================================================
# Session Provider (for FastAPI Depends injection)
# =============================================================================


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide async session for dependency injection

    Note: The session maker context manager automatically:
    - Handles session cleanup on exit
    - Rolls back on exception
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        yield session


# =============================================================================
# Database Class (for DI providers and background jobs)
# =============================================================================


class Database:
    """Session factory for code that runs outside a request (e.g. the hold sweeper)"""

    def __init__(self, *, engine_manager: AsyncEngineManager | None = None) -> None:
        self._engine_manager = engine_manager or _engine_manager

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session_maker = self._engine_manager.get_session_maker()
        async with session_maker() as session:
            yield session

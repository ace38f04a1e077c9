"""
Production FastAPI Application

Booking API plus the periodic expired-hold sweeper.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables, get_engine
from src.platform.logging.loguru_io import Logger
from src.service.booking.driving_adapter.background.hold_sweeper import run_hold_sweeper


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Cinema Booking] Starting up...')

    # Wire dependency injection for all modules
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Cinema Booking] Dependency injection wired')

    await create_db_and_tables()
    Logger.base.info('🗄️  [Cinema Booking] Database schema ready')

    async with anyio.create_task_group() as tg:
        if settings.HOLD_SWEEP_INTERVAL_SECONDS > 0:
            tg.start_soon(
                lambda: run_hold_sweeper(
                    interval_seconds=settings.HOLD_SWEEP_INTERVAL_SECONDS,
                    database=container.database(),
                    notifier=container.booking_notifier(),
                )
            )
        Logger.base.info('✅ [Cinema Booking] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Cinema Booking] Shutting down...')
        tg.cancel_scope.cancel()

    await get_engine().dispose()
    Logger.base.info('🗄️  [Cinema Booking] Database engine disposed')

    # Unwire DI
    container.unwire()

    Logger.base.info('👋 [Cinema Booking] Shutdown complete')


# Create FastAPI app using shared factory
app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')

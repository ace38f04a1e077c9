"""
Periodic release of expired seat holds

Runs inside the application task group; one session (and transaction) per sweep.
"""

import anyio

from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.expire_stale_holds_use_case import ExpireStaleHoldsUseCase
from src.service.booking.app.service.booking_notifier import BookingNotifier


async def sweep_once(*, database: Database, notifier: BookingNotifier) -> int:
    async with database.session() as session:
        use_case = ExpireStaleHoldsUseCase(uow=SqlAlchemyUnitOfWork(session), notifier=notifier)
        expired = await use_case.execute()
    return len(expired)


async def run_hold_sweeper(
    *, interval_seconds: float, database: Database, notifier: BookingNotifier
) -> None:
    Logger.base.info(f'🧹 [SWEEPER] Releasing expired holds every {interval_seconds}s')
    while True:
        await anyio.sleep(interval_seconds)
        try:
            await sweep_once(database=database, notifier=notifier)
        except Exception as e:
            # Next tick retries
            Logger.base.exception(f'❌ [SWEEPER] Sweep failed: {e}')

from typing import Self

from fastapi import Depends

from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import ShowtimeNotFoundError
from src.platform.logging.loguru_io import Logger


class DeleteShowtimeUseCase:
    """
    Delete a showtime, or only deactivate it while it still has held or booked seats

    Returns:
        True when the showtime and its ledger rows were deleted, False when it was
        only deactivated
    """

    def __init__(self, uow: AbstractUnitOfWork):
        self.uow = uow

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def execute(self, *, showtime_id: int) -> bool:
        async with self.uow:
            showtime = await self.uow.catalog_query_repo.get_showtime(showtime_id=showtime_id)
            if not showtime:
                raise ShowtimeNotFoundError()

            if await self.uow.reservation_ledger.discard(showtime_id=showtime_id):
                await self.uow.showtime_command_repo.delete(showtime_id=showtime_id)
                await self.uow.commit()
                Logger.base.info(f'🗑️ [SHOWTIME] Deleted showtime {showtime_id}')
                return True

        # A partially discarded ledger was rolled back on exit
        async with self.uow:
            await self.uow.showtime_command_repo.deactivate(showtime_id=showtime_id)
            await self.uow.commit()

        Logger.base.info(f'🗄️ [SHOWTIME] Deactivated showtime {showtime_id}')
        return False

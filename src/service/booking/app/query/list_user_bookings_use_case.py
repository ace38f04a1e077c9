from typing import List, Self

from fastapi import Depends

from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.entity.booking_entity import Booking


class ListUserBookingsUseCase:
    def __init__(self, uow: AbstractUnitOfWork):
        self.uow = uow

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def execute(self, *, user_id: int) -> List[Booking]:
        """Newest first"""
        async with self.uow:
            return await self.uow.booking_repo.list_by_user(user_id=user_id)

from typing import Self
from uuid import UUID

from fastapi import Depends

from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import BookingNotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.booking_details import BookingDetails


class GetBookingDetailsUseCase:
    def __init__(self, uow: AbstractUnitOfWork):
        self.uow = uow

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def execute(self, *, booking_id: UUID, requester_user_id: int) -> BookingDetails:
        """
        Raises:
            BookingNotFoundError: no booking with this id
            UnauthorizedError: requester does not own the booking
        """
        async with self.uow:
            booking = await self.uow.booking_repo.get_by_id(booking_id=booking_id)
            if not booking:
                raise BookingNotFoundError()
            booking.validate_owner(user_id=requester_user_id, action='view')

            showtime = await self.uow.catalog_query_repo.get_showtime(
                showtime_id=booking.showtime_id
            )
            seats = (
                await self.uow.catalog_query_repo.get_seats(
                    screen_id=showtime.screen_id, seat_ids=booking.seat_ids
                )
                if showtime
                else []
            )

        order = {seat_id: index for index, seat_id in enumerate(booking.seat_ids)}
        return BookingDetails(
            booking=booking,
            showtime=showtime,
            seats=sorted(seats, key=lambda seat: order.get(seat.id, len(order))),
        )

from itertools import groupby
from typing import Self

from fastapi import Depends

from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import ShowtimeNotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.catalog.app.dto.seat_map import SeatRow, SeatView, ShowtimeSeatMap


class GetShowtimeSeatMapUseCase:
    def __init__(self, uow: AbstractUnitOfWork):
        self.uow = uow

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def execute(self, *, showtime_id: int) -> ShowtimeSeatMap:
        """
        Seats grouped by row with tier, price and effective status

        Expired holds are shown as available. Seats without a ledger row (added to
        the screen after the showtime was created) are not bookable and left out.
        """
        async with self.uow:
            showtime = await self.uow.catalog_query_repo.get_showtime(showtime_id=showtime_id)
            if not showtime:
                raise ShowtimeNotFoundError()

            seats = await self.uow.catalog_query_repo.list_active_seats(
                screen_id=showtime.screen_id
            )
            statuses = await self.uow.reservation_ledger.get_effective_statuses(
                showtime_id=showtime_id
            )

        views = [
            SeatView(
                seat_id=seat.id,
                label=seat.label,
                row=seat.row,
                number=seat.number,
                tier=seat.tier,
                price=showtime.prices.get(seat.tier),
                status=statuses[seat.id],
            )
            for seat in sorted(seats, key=lambda seat: (seat.row, seat.number))
            if seat.id in statuses
        ]
        rows = [
            SeatRow(row=row, seats=list(row_seats))
            for row, row_seats in groupby(views, key=lambda view: view.row)
        ]
        return ShowtimeSeatMap(showtime=showtime, rows=rows)

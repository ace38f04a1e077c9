from datetime import datetime, timedelta
from typing import Dict, Self

from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import (
    DomainError,
    NotFoundError,
    ShowtimeOverlapError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.utc_datetime import utc_now
from src.service.catalog.domain.entity.showtime_entity import Showtime


class CreateShowtimeUseCase:
    """
    Schedule a movie on a screen and open its seat ledger

    Flow:
    1. Movie must exist and be active
    2. end_time = start_time + duration + SHOWTIME_BUFFER_MINUTES
    3. Reject overlap with another active showtime on the same screen
    4. Every active seat tier of the screen must have a price
    5. Insert the showtime and one available ledger row per active seat in one transaction
    """

    def __init__(self, uow: AbstractUnitOfWork):
        self.uow = uow
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    def depends(cls, uow: AbstractUnitOfWork = Depends(get_unit_of_work)) -> Self:
        return cls(uow=uow)

    @Logger.io
    async def execute(
        self,
        *,
        movie_id: int,
        screen_id: int,
        start_time: datetime,
        prices: Dict[str, int],
    ) -> Showtime:
        with self.tracer.start_as_current_span(
            'use_case.create_showtime',
            attributes={'movie.id': movie_id, 'screen.id': screen_id},
        ):
            async with self.uow:
                movie = await self.uow.catalog_query_repo.get_movie(movie_id=movie_id)
                if not movie:
                    raise NotFoundError('Movie not found')

                showtime = Showtime.schedule(
                    movie=movie,
                    screen_id=screen_id,
                    start_time=start_time,
                    prices=prices,
                    buffer=timedelta(minutes=settings.SHOWTIME_BUFFER_MINUTES),
                )
                if showtime.start_time <= utc_now():
                    raise DomainError('Showtime must start in the future')

                overlapping = await self.uow.showtime_command_repo.find_overlapping(
                    screen_id=screen_id,
                    start_time=showtime.start_time,
                    end_time=showtime.end_time,
                )
                if overlapping:
                    raise ShowtimeOverlapError(
                        f'Screen {screen_id} already has showtime {overlapping[0].id} '
                        f'between {overlapping[0].start_time.isoformat()} '
                        f'and {overlapping[0].end_time.isoformat()}'
                    )

                seats = await self.uow.catalog_query_repo.list_active_seats(screen_id=screen_id)
                if not seats:
                    raise DomainError(f'Screen {screen_id} has no active seats')
                for seat in seats:
                    showtime.price_for(seat.tier)

                created = await self.uow.showtime_command_repo.create(showtime=showtime)
                assert created.id is not None
                await self.uow.reservation_ledger.initialize(
                    showtime_id=created.id, seat_ids=[seat.id for seat in seats]
                )
                await self.uow.commit()

            Logger.base.info(
                f'🎬 [SHOWTIME] Created showtime {created.id} of "{movie.title}" on screen '
                f'{screen_id} with {len(seats)} seats'
            )
            return created

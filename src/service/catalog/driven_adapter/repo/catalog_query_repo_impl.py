from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.platform.types.utc_datetime import as_utc
from src.service.catalog.app.interface.i_catalog_query_repo import ICatalogQueryRepo
from src.service.catalog.domain.entity.seat_entity import Seat
from src.service.catalog.domain.entity.showtime_entity import Movie, Showtime
from src.service.catalog.driven_adapter.model.catalog_model import (
    MovieModel,
    SeatModel,
    ShowtimeModel,
)


def showtime_model_to_entity(db_showtime: ShowtimeModel) -> Showtime:
    theater = db_showtime.screen.theater if db_showtime.screen else None
    return Showtime(
        id=db_showtime.id,
        movie_id=db_showtime.movie_id,
        screen_id=db_showtime.screen_id,
        start_time=as_utc(db_showtime.start_time),
        end_time=as_utc(db_showtime.end_time),
        prices={tier: int(price) for tier, price in (db_showtime.prices or {}).items()},
        is_active=db_showtime.is_active,
        movie_title=db_showtime.movie.title if db_showtime.movie else '',
        theater_name=theater.name if theater else '',
    )


class CatalogQueryRepoImpl(ICatalogQueryRepo):
    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _seat_to_entity(db_seat: SeatModel) -> Seat:
        return Seat(
            id=db_seat.id,
            screen_id=db_seat.screen_id,
            row=db_seat.row,
            number=db_seat.number,
            tier=db_seat.tier,
            is_active=db_seat.is_active,
        )

    @Logger.io
    async def get_showtime(self, *, showtime_id: int) -> Showtime | None:
        result = await self.session.execute(
            select(ShowtimeModel)
            .where(ShowtimeModel.id == showtime_id)
            .execution_options(populate_existing=True)
        )
        db_showtime = result.scalar_one_or_none()

        if not db_showtime:
            return None

        return showtime_model_to_entity(db_showtime)

    @Logger.io
    async def get_seats(self, *, screen_id: int, seat_ids: List[int]) -> List[Seat]:
        if not seat_ids:
            return []
        result = await self.session.execute(
            select(SeatModel)
            .where(SeatModel.screen_id == screen_id)
            .where(SeatModel.id.in_(seat_ids))
            .order_by(SeatModel.id)
        )
        return [self._seat_to_entity(db_seat) for db_seat in result.scalars().all()]

    @Logger.io
    async def list_active_seats(self, *, screen_id: int) -> List[Seat]:
        result = await self.session.execute(
            select(SeatModel)
            .where(SeatModel.screen_id == screen_id)
            .where(SeatModel.is_active.is_(True))
            .order_by(SeatModel.row, SeatModel.number)
        )
        return [self._seat_to_entity(db_seat) for db_seat in result.scalars().all()]

    @Logger.io
    async def get_movie(self, *, movie_id: int) -> Movie | None:
        result = await self.session.execute(select(MovieModel).where(MovieModel.id == movie_id))
        db_movie = result.scalar_one_or_none()

        if not db_movie:
            return None

        return Movie(
            id=db_movie.id,
            title=db_movie.title,
            duration_minutes=db_movie.duration_minutes,
            is_active=db_movie.is_active,
        )

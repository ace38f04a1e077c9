from datetime import datetime
from typing import List

import attrs
from sqlalchemy import delete, select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.catalog.app.interface.i_showtime_command_repo import IShowtimeCommandRepo
from src.service.catalog.domain.entity.showtime_entity import Showtime
from src.service.catalog.driven_adapter.model.catalog_model import ShowtimeModel
from src.service.catalog.driven_adapter.repo.catalog_query_repo_impl import (
    showtime_model_to_entity,
)


class ShowtimeCommandRepoImpl(IShowtimeCommandRepo):
    def __init__(self, session: AsyncSession):
        self.session = session

    @Logger.io
    async def create(self, *, showtime: Showtime) -> Showtime:
        db_showtime = ShowtimeModel(
            movie_id=showtime.movie_id,
            screen_id=showtime.screen_id,
            start_time=showtime.start_time,
            end_time=showtime.end_time,
            prices=dict(showtime.prices),
            is_active=showtime.is_active,
        )
        self.session.add(db_showtime)
        await self.session.flush()

        return attrs.evolve(showtime, id=db_showtime.id)

    @Logger.io
    async def find_overlapping(
        self, *, screen_id: int, start_time: datetime, end_time: datetime
    ) -> List[Showtime]:
        result = await self.session.execute(
            select(ShowtimeModel)
            .where(ShowtimeModel.screen_id == screen_id)
            .where(ShowtimeModel.is_active.is_(True))
            .where(ShowtimeModel.start_time < end_time)
            .where(ShowtimeModel.end_time > start_time)
            .order_by(ShowtimeModel.start_time)
        )
        return [showtime_model_to_entity(db_showtime) for db_showtime in result.scalars().all()]

    @Logger.io
    async def deactivate(self, *, showtime_id: int) -> None:
        await self.session.execute(
            sql_update(ShowtimeModel)
            .where(ShowtimeModel.id == showtime_id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )

    @Logger.io
    async def delete(self, *, showtime_id: int) -> None:
        await self.session.execute(
            delete(ShowtimeModel)
            .where(ShowtimeModel.id == showtime_id)
            .execution_options(synchronize_session=False)
        )

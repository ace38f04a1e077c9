from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from src.service.catalog.domain.entity.showtime_entity import Showtime


class IShowtimeCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, showtime: Showtime) -> Showtime:
        """
        Persist a new showtime

        Returns:
            Showtime entity with its generated id
        """
        pass

    @abstractmethod
    async def find_overlapping(
        self, *, screen_id: int, start_time: datetime, end_time: datetime
    ) -> List[Showtime]:
        """Active showtimes of the screen intersecting [start_time, end_time)"""
        pass

    @abstractmethod
    async def deactivate(self, *, showtime_id: int) -> None:
        pass

    @abstractmethod
    async def delete(self, *, showtime_id: int) -> None:
        pass

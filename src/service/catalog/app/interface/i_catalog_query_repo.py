"""
Catalog Query Repository Interface

Read side of the seat catalog: showtimes with their price tables, the seats of
a screen and movies.
"""

from abc import ABC, abstractmethod
from typing import List

from src.service.catalog.domain.entity.seat_entity import Seat
from src.service.catalog.domain.entity.showtime_entity import Movie, Showtime


class ICatalogQueryRepo(ABC):
    @abstractmethod
    async def get_showtime(self, *, showtime_id: int) -> Showtime | None:
        """
        Get showtime with movie title and theater name resolved

        Returns:
            Showtime entity or None if not found
        """
        pass

    @abstractmethod
    async def get_seats(self, *, screen_id: int, seat_ids: List[int]) -> List[Seat]:
        """
        Get the given seats restricted to one screen

        Seats of other screens are absent from the result.
        """
        pass

    @abstractmethod
    async def list_active_seats(self, *, screen_id: int) -> List[Seat]:
        pass

    @abstractmethod
    async def get_movie(self, *, movie_id: int) -> Movie | None:
        pass

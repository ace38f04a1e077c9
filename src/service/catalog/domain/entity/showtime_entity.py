from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import attrs

from src.platform.exception.exceptions import (
    DomainError,
    InvalidSeatTierError,
    ShowtimeAlreadyStartedError,
    ShowtimeInactiveError,
)
from src.platform.logging.loguru_io import Logger


@attrs.define(frozen=True)
class Movie:
    id: int
    title: str
    duration_minutes: int
    is_active: bool = True


@attrs.define(frozen=True)
class Showtime:
    id: Optional[int]
    movie_id: int
    screen_id: int
    start_time: datetime
    end_time: datetime
    prices: Dict[str, int] = attrs.field(factory=dict)
    is_active: bool = True
    movie_title: str = ''
    theater_name: str = ''

    @classmethod
    @Logger.io
    def schedule(
        cls,
        *,
        movie: Movie,
        screen_id: int,
        start_time: datetime,
        prices: Dict[str, int],
        buffer: timedelta,
    ) -> 'Showtime':
        """
        Build a new showtime for a movie on a screen.

        end_time = start_time + movie duration + buffer (ads, trailers and cleaning).

        Raises:
            DomainError: inactive movie, naive start time or a negative/non-integer price
        """
        if not movie.is_active:
            raise DomainError('Cannot create showtime for inactive movie')
        if start_time.tzinfo is None:
            raise DomainError('start_time must be timezone-aware')
        if not prices:
            raise DomainError('At least one tier price is required')
        for tier, price in prices.items():
            if not isinstance(price, int) or isinstance(price, bool) or price < 0:
                raise DomainError(f'Price for tier {tier} must be a non-negative integer')

        start_time = start_time.astimezone(timezone.utc)
        end_time = start_time + timedelta(minutes=movie.duration_minutes) + buffer
        return cls(
            id=None,
            movie_id=movie.id,
            screen_id=screen_id,
            start_time=start_time,
            end_time=end_time,
            prices=dict(prices),
            is_active=True,
            movie_title=movie.title,
        )

    def price_for(self, tier: str) -> int:
        try:
            return self.prices[tier]
        except KeyError:
            raise InvalidSeatTierError(tier)

    def overlaps(self, *, start_time: datetime, end_time: datetime) -> bool:
        # Half-open intervals: back-to-back showtimes do not overlap
        return self.start_time < end_time and start_time < self.end_time

    def cancellation_deadline(self, *, cutoff: timedelta) -> datetime:
        return self.start_time - cutoff

    def validate_bookable(self, *, now: datetime) -> None:
        if not self.is_active:
            raise ShowtimeInactiveError()
        if self.start_time <= now:
            raise ShowtimeAlreadyStartedError()

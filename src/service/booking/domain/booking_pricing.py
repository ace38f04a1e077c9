from typing import Iterable

from src.service.catalog.domain.entity.seat_entity import Seat
from src.service.catalog.domain.entity.showtime_entity import Showtime


def calculate_total_amount(*, showtime: Showtime, seats: Iterable[Seat]) -> int:
    """
    Sum the showtime's tier price for each seat's own tier.

    Raises:
        InvalidSeatTierError: a seat tier has no entry in the showtime price table
    """
    return sum(showtime.price_for(seat.tier) for seat in seats)

from typing import List

import attrs

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.catalog.domain.entity.seat_entity import Seat
from src.service.catalog.domain.entity.showtime_entity import Showtime


@attrs.define(frozen=True)
class BookingDetails:
    booking: Booking
    showtime: Showtime | None = None
    seats: List[Seat] = attrs.field(factory=list)

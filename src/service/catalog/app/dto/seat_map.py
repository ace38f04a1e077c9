from typing import List, Optional

import attrs

from src.service.catalog.domain.entity.showtime_entity import Showtime
from src.service.reservation.domain.entity.seat_reservation_entity import ReservationStatus


@attrs.define(frozen=True)
class SeatView:
    seat_id: int
    label: str
    row: str
    number: int
    tier: str
    price: Optional[int]
    status: ReservationStatus


@attrs.define(frozen=True)
class SeatRow:
    row: str
    seats: List[SeatView] = attrs.field(factory=list)


@attrs.define(frozen=True)
class ShowtimeSeatMap:
    showtime: Showtime
    rows: List[SeatRow] = attrs.field(factory=list)

    @property
    def available_count(self) -> int:
        return sum(
            1
            for row in self.rows
            for seat in row.seats
            if seat.status == ReservationStatus.AVAILABLE
        )

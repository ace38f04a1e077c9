from datetime import datetime
from typing import List
from uuid import UUID

import attrs

from src.service.reservation.domain.entity.seat_reservation_entity import SeatReservation


@attrs.define(frozen=True)
class HoldResult:
    booking_id: UUID
    expires_at: datetime
    reservations: List[SeatReservation] = attrs.field(factory=list)
    # Bookings whose expired holds were reclaimed (all of their rows were released)
    evicted_booking_ids: List[UUID] = attrs.field(factory=list)

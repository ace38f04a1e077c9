from datetime import datetime
from enum import StrEnum
from typing import Optional
from uuid import UUID

import attrs


class ReservationStatus(StrEnum):
    AVAILABLE = 'available'
    HELD = 'held'
    BOOKED = 'booked'


@attrs.define(frozen=True)
class SeatReservation:
    """
    Ledger row for one (showtime, seat) pair.

    Invariants:
    - AVAILABLE: booking_id and expires_at are None
    - HELD: booking_id and expires_at are set (expires_at may already be in the past)
    - BOOKED: booking_id is set, expires_at is None

    `version` is the optimistic concurrency counter; transition methods keep the
    version they were read with so the repository can compare-and-swap on it.
    """

    showtime_id: int
    seat_id: int
    status: ReservationStatus = ReservationStatus.AVAILABLE
    booking_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    version: int = 0

    @property
    def key(self) -> tuple[int, int]:
        return self.showtime_id, self.seat_id

    def is_expired_hold(self, *, now: datetime) -> bool:
        return (
            self.status == ReservationStatus.HELD
            and self.expires_at is not None
            and self.expires_at < now
        )

    def is_available(self, *, now: datetime) -> bool:
        """Expired holds count as available even before any sweep reclaims them."""
        return self.status == ReservationStatus.AVAILABLE or self.is_expired_hold(now=now)

    def is_holdable_by(self, *, booking_id: UUID, now: datetime) -> bool:
        if self.is_available(now=now):
            return True
        return self.status == ReservationStatus.HELD and self.booking_id == booking_id

    def effective_status(self, *, now: datetime) -> ReservationStatus:
        return ReservationStatus.AVAILABLE if self.is_expired_hold(now=now) else self.status

    def hold(self, *, booking_id: UUID, expires_at: datetime) -> 'SeatReservation':
        return attrs.evolve(
            self, status=ReservationStatus.HELD, booking_id=booking_id, expires_at=expires_at
        )

    def confirm(self) -> 'SeatReservation':
        return attrs.evolve(self, status=ReservationStatus.BOOKED, expires_at=None)

    def release(self) -> 'SeatReservation':
        return attrs.evolve(
            self, status=ReservationStatus.AVAILABLE, booking_id=None, expires_at=None
        )

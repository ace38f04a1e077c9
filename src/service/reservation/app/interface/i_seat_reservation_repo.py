"""
Seat Reservation Repository Interface (Reservation Ledger storage)

Rows are keyed by (showtime_id, seat_id). All writes after the initial insert go
through compare_and_swap so that a multi-row ledger operation is applied as one
unit or not at all.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from uuid import UUID

from src.service.reservation.domain.entity.seat_reservation_entity import SeatReservation


class ISeatReservationRepo(ABC):
    @abstractmethod
    async def create_many(self, *, reservations: List[SeatReservation]) -> None:
        """Bulk insert ledger rows (one per seat, status available)"""
        pass

    @abstractmethod
    async def exists_for_showtime(self, *, showtime_id: int) -> bool:
        pass

    @abstractmethod
    async def get_by_seats(
        self, *, showtime_id: int, seat_ids: List[int]
    ) -> List[SeatReservation]:
        """
        Get ledger rows for the given seats of a showtime

        Seat ids without a row are simply absent from the result.
        """
        pass

    @abstractmethod
    async def list_by_showtime(self, *, showtime_id: int) -> List[SeatReservation]:
        pass

    @abstractmethod
    async def list_by_booking(self, *, booking_id: UUID) -> List[SeatReservation]:
        pass

    @abstractmethod
    async def list_expired_holds(self, *, now: datetime) -> List[SeatReservation]:
        """Rows with status held and expires_at < now"""
        pass

    @abstractmethod
    async def compare_and_swap(self, *, reservations: List[SeatReservation]) -> List[int]:
        """
        Atomically write the new state of several rows of one showtime

        Each given row carries the version it was read with. The write is applied
        only if every stored row still has that version; the stored version is
        then incremented.

        Args:
            reservations: New row states, all for the same showtime

        Returns:
            Seat ids whose stored version no longer matched (empty on success).
            Nothing is written when this list is non-empty.
        """
        pass

    @abstractmethod
    async def delete_available_by_showtime(self, *, showtime_id: int) -> int:
        """
        Delete the showtime's rows that are still available

        Returns:
            Number of rows deleted; held and booked rows are left in place
        """
        pass

"""
Booking Repository Interface

Bookings are never deleted. Status changes go through `update`, a single-row
compare-and-swap on (booking_status, payment_status).
"""

from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from src.service.booking.domain.entity.booking_entity import Booking


class IBookingRepo(ABC):
    @abstractmethod
    async def create(self, *, booking: Booking) -> Booking:
        pass

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        """
        Get single booking by ID

        Returns:
            Booking entity or None if not found
        """
        pass

    @abstractmethod
    async def list_by_user(self, *, user_id: int) -> List[Booking]:
        """Bookings of a user, newest first"""
        pass

    @abstractmethod
    async def update(self, *, booking: Booking, expected: Booking) -> Booking:
        """
        Write the new booking state if the stored one still matches `expected`

        Args:
            booking: New booking state
            expected: Booking as it was read; its booking_status and payment_status
                must still be the stored ones

        Raises:
            BookingStateConflictError: stored statuses changed since the read
        """
        pass

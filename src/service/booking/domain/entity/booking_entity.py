from datetime import datetime, timezone
from enum import StrEnum
from typing import List, Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import (
    AlreadyPaidError,
    DomainError,
    UnauthorizedError,
)
from src.platform.logging.loguru_io import Logger


class BookingStatus(StrEnum):
    RESERVED = 'reserved'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'


class PaymentStatus(StrEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'


@attrs.define
class Booking:
    id: UUID
    user_id: int
    showtime_id: int
    total_amount: int
    payment_method: str
    seat_ids: List[int] = attrs.field(factory=list)
    payment_status: PaymentStatus = PaymentStatus.PENDING
    booking_status: BookingStatus = BookingStatus.RESERVED
    transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        user_id: int,
        showtime_id: int,
        seat_ids: List[int],
        total_amount: int,
        payment_method: str,
    ) -> 'Booking':
        if not seat_ids:
            raise DomainError('At least one seat must be selected')
        if len(set(seat_ids)) != len(seat_ids):
            raise DomainError('Duplicate seats in booking request')
        if total_amount < 0:
            raise DomainError('Total amount cannot be negative')
        if not payment_method:
            raise DomainError('payment_method is required')

        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            user_id=user_id,
            showtime_id=showtime_id,
            seat_ids=list(seat_ids),
            total_amount=total_amount,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING,
            booking_status=BookingStatus.RESERVED,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        return self.booking_status != BookingStatus.CANCELLED

    def validate_owner(self, *, user_id: int, action: str) -> None:
        if self.user_id != user_id:
            raise UnauthorizedError(f'Unauthorized: You cannot {action} this booking')

    @Logger.io
    def validate_can_be_paid(self) -> None:
        """
        Raises:
            AlreadyPaidError: payment already completed
            DomainError: booking cancelled or refunded
        """
        if self.payment_status == PaymentStatus.COMPLETED:
            raise AlreadyPaidError()
        if self.booking_status == BookingStatus.CANCELLED:
            raise DomainError('Cannot pay for cancelled booking')
        if self.payment_status == PaymentStatus.REFUNDED:
            raise DomainError('Cannot pay for refunded booking')

    @Logger.io
    def mark_as_paid(self, *, transaction_id: Optional[str]) -> 'Booking':
        now = datetime.now(timezone.utc)
        return attrs.evolve(
            self,
            payment_status=PaymentStatus.COMPLETED,
            booking_status=BookingStatus.CONFIRMED,
            transaction_id=transaction_id,
            updated_at=now,
        )

    @Logger.io
    def mark_payment_failed(self) -> 'Booking':
        # Booking stays RESERVED so the buyer can retry or cancel until the hold expires
        now = datetime.now(timezone.utc)
        return attrs.evolve(self, payment_status=PaymentStatus.FAILED, updated_at=now)

    @Logger.io
    def cancel(self) -> 'Booking':
        """
        Cancel booking; a completed payment becomes REFUNDED.

        Raises:
            DomainError: booking already cancelled
        """
        if self.booking_status == BookingStatus.CANCELLED:
            raise DomainError('Booking already cancelled')

        payment_status = (
            PaymentStatus.REFUNDED
            if self.payment_status == PaymentStatus.COMPLETED
            else self.payment_status
        )
        now = datetime.now(timezone.utc)
        return attrs.evolve(
            self,
            booking_status=BookingStatus.CANCELLED,
            payment_status=payment_status,
            updated_at=now,
        )

    @Logger.io
    def expire(self) -> 'Booking':
        """Hold lapsed before payment; only RESERVED bookings can expire."""
        if self.booking_status != BookingStatus.RESERVED:
            raise DomainError(f'Cannot expire {self.booking_status} booking')
        now = datetime.now(timezone.utc)
        return attrs.evolve(self, booking_status=BookingStatus.CANCELLED, updated_at=now)

from datetime import datetime
from enum import StrEnum
from typing import List, Optional
from uuid import UUID

import attrs


class NotificationEvent(StrEnum):
    BOOKING_CREATED = 'booking.created'
    BOOKING_CONFIRMED = 'booking.confirmed'
    BOOKING_CANCELLED = 'booking.cancelled'
    PAYMENT_SUCCESS = 'payment.success'
    PAYMENT_FAILED = 'payment.failed'


@attrs.define(frozen=True)
class BookingNotification:
    """Payload handed to the notification sink"""

    booking_id: UUID
    user_id: int
    amount: int
    email: Optional[str] = None
    phone: Optional[str] = None
    user_name: Optional[str] = None
    movie_title: str = 'Movie'
    theater_name: str = 'Theater'
    showtime: Optional[datetime] = None
    seats: List[str] = attrs.field(factory=list)
    transaction_id: Optional[str] = None
    message: Optional[str] = None

"""
Booking Notifier - best-effort notifications after a commit

Builds the notification payload (user contact, movie, theater, seat labels) and
hands it to the sink. Failures are logged and never propagate to the caller.
"""

from typing import Optional

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_notification_sink import INotificationSink
from src.service.booking.domain.domain_event.booking_notification_event import (
    BookingNotification,
    NotificationEvent,
)
from src.service.booking.domain.entity.booking_entity import Booking


class BookingNotifier:
    def __init__(self, *, notification_sink: INotificationSink) -> None:
        self.notification_sink = notification_sink

    async def notify(
        self,
        *,
        uow: AbstractUnitOfWork,
        event: NotificationEvent,
        booking: Booking,
        message: Optional[str] = None,
    ) -> None:
        try:
            payload = await self._build_payload(uow=uow, booking=booking, message=message)
            await self.notification_sink.notify(event=event, payload=payload)
        except Exception as e:
            Logger.base.warning(
                f'⚠️ [NOTIFY] {event} for booking {booking.id} could not be sent: {e}'
            )

    async def _build_payload(
        self, *, uow: AbstractUnitOfWork, booking: Booking, message: Optional[str]
    ) -> BookingNotification:
        async with uow:
            contact = await uow.user_contact_query_repo.get_contact(user_id=booking.user_id)
            showtime = await uow.catalog_query_repo.get_showtime(showtime_id=booking.showtime_id)
            seats = (
                await uow.catalog_query_repo.get_seats(
                    screen_id=showtime.screen_id, seat_ids=booking.seat_ids
                )
                if showtime
                else []
            )

        return BookingNotification(
            booking_id=booking.id,
            user_id=booking.user_id,
            amount=booking.total_amount,
            email=contact.email if contact else None,
            phone=contact.phone if contact else None,
            user_name=contact.name if contact else None,
            movie_title=(showtime.movie_title if showtime else '') or 'Movie',
            theater_name=(showtime.theater_name if showtime else '') or 'Theater',
            showtime=showtime.start_time if showtime else None,
            seats=[seat.label for seat in seats],
            transaction_id=booking.transaction_id,
            message=message,
        )

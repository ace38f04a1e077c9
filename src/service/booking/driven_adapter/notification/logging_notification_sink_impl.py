"""
Notification sink that renders e-mail and SMS messages into the log

Stands in for real e-mail/SMS providers; every rendered message is also kept in
`sent` so it can be inspected.
"""

from typing import Dict, List, Tuple

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_notification_sink import INotificationSink
from src.service.booking.domain.domain_event.booking_notification_event import (
    BookingNotification,
    NotificationEvent,
)


_EMAIL_TEMPLATES: Dict[NotificationEvent, Tuple[str, str]] = {
    NotificationEvent.BOOKING_CREATED: (
        'Your booking has been created',
        'Dear customer, your booking for {movie} at {theater} on {showtime} has been created.',
    ),
    NotificationEvent.BOOKING_CONFIRMED: (
        'Your booking has been confirmed',
        'Dear customer, your booking for {movie} at {theater} on {showtime} has been confirmed.',
    ),
    NotificationEvent.BOOKING_CANCELLED: (
        'Your booking has been cancelled',
        'Dear customer, your booking for {movie} at {theater} on {showtime} has been cancelled.',
    ),
    NotificationEvent.PAYMENT_SUCCESS: (
        'Payment successful',
        'Dear customer, your payment of {amount} for booking {booking_id} has been successful.',
    ),
    NotificationEvent.PAYMENT_FAILED: (
        'Payment failed',
        'Dear customer, your payment of {amount} for booking {booking_id} has failed.',
    ),
}

_SMS_TEMPLATES: Dict[NotificationEvent, str] = {
    NotificationEvent.BOOKING_CREATED: 'Your booking for {movie} on {showtime} has been created.',
    NotificationEvent.BOOKING_CONFIRMED: 'Your booking for {movie} on {showtime} has been confirmed.',
    NotificationEvent.BOOKING_CANCELLED: 'Your booking for {movie} on {showtime} has been cancelled.',
    NotificationEvent.PAYMENT_SUCCESS: 'Your payment of {amount} for booking {booking_id} has been successful.',
    NotificationEvent.PAYMENT_FAILED: 'Your payment of {amount} for booking {booking_id} has failed.',
}


class LoggingNotificationSinkImpl(INotificationSink):
    def __init__(self) -> None:
        self.sent: List[dict] = []

    @Logger.io
    async def notify(self, *, event: NotificationEvent, payload: BookingNotification) -> None:
        fields = {
            'movie': payload.movie_title,
            'theater': payload.theater_name,
            'showtime': payload.showtime.isoformat() if payload.showtime else 'N/A',
            'amount': payload.amount,
            'booking_id': payload.booking_id,
        }

        if payload.email:
            subject, body = _EMAIL_TEMPLATES[event]
            message = body.format(**fields)
            self.sent.append(
                {'channel': 'email', 'to': payload.email, 'subject': subject, 'message': message}
            )
            Logger.base.info(f'📧 [NOTIFY] {event} → {payload.email}: {subject}')

        if payload.phone:
            message = _SMS_TEMPLATES[event].format(**fields)
            self.sent.append({'channel': 'sms', 'to': payload.phone, 'message': message})
            Logger.base.info(f'📱 [NOTIFY] {event} → {payload.phone}: {message}')

from abc import ABC, abstractmethod

from src.service.booking.domain.domain_event.booking_notification_event import (
    BookingNotification,
    NotificationEvent,
)


class INotificationSink(ABC):
    @abstractmethod
    async def notify(self, *, event: NotificationEvent, payload: BookingNotification) -> None:
        """Deliver one booking notification (e-mail, SMS, push...)"""
        pass

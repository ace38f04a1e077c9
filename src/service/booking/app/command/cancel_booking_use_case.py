from datetime import timedelta
from typing import Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import (
    BookingNotFoundError,
    CancellationWindowClosedError,
    DomainError,
    ShowtimeNotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.utc_datetime import utc_now
from src.service.booking.app.service.booking_notifier import BookingNotifier
from src.service.booking.domain.domain_event.booking_notification_event import NotificationEvent
from src.service.booking.domain.entity.booking_entity import Booking, BookingStatus


class CancelBookingUseCase:
    """
    Cancel a booking on behalf of its owner

    Allowed until CANCELLATION_CUTOFF_HOURS before the showtime starts. A completed
    payment is marked REFUNDED (the refund itself is settled outside this service).
    The booking update and the seat release commit together.
    """

    def __init__(self, *, uow: AbstractUnitOfWork, notifier: BookingNotifier) -> None:
        self.uow = uow
        self.notifier = notifier
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow: AbstractUnitOfWork = Depends(get_unit_of_work),
        notifier: BookingNotifier = Depends(Provide[Container.booking_notifier]),
    ) -> Self:
        return cls(uow=uow, notifier=notifier)

    @Logger.io
    async def execute(self, *, booking_id: UUID, requester_user_id: int) -> Booking:
        with self.tracer.start_as_current_span(
            'use_case.cancel_booking',
            attributes={'booking.id': str(booking_id), 'user.id': requester_user_id},
        ):
            async with self.uow:
                booking = await self.uow.booking_repo.get_by_id(booking_id=booking_id)
                if not booking:
                    raise BookingNotFoundError()
                booking.validate_owner(user_id=requester_user_id, action='cancel')
                if booking.booking_status == BookingStatus.CANCELLED:
                    raise DomainError('Booking already cancelled')

                showtime = await self.uow.catalog_query_repo.get_showtime(
                    showtime_id=booking.showtime_id
                )
                if not showtime:
                    raise ShowtimeNotFoundError()

                deadline = showtime.cancellation_deadline(
                    cutoff=timedelta(hours=settings.CANCELLATION_CUTOFF_HOURS)
                )
                if utc_now() > deadline:
                    raise CancellationWindowClosedError(settings.CANCELLATION_CUTOFF_HOURS)

                # Seat rows are locked before the booking row, as in hold and sweep
                released = await self.uow.reservation_ledger.release(booking_id=booking_id)
                cancelled = await self.uow.booking_repo.update(
                    booking=booking.cancel(), expected=booking
                )
                await self.uow.commit()

            Logger.base.info(
                f'🚫 [CANCEL] Booking {booking_id} cancelled '
                f'(payment {cancelled.payment_status}), released {released} seats'
            )

        await self.notifier.notify(
            uow=self.uow, event=NotificationEvent.BOOKING_CANCELLED, booking=cancelled
        )
        return cancelled

from datetime import timedelta
from typing import List, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils.compat import uuid7

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import (
    DomainError,
    SeatConflictError,
    ShowtimeNotFoundError,
    UnknownSeatError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.utc_datetime import utc_now
from src.service.booking.app.service.booking_notifier import BookingNotifier
from src.service.booking.domain.booking_pricing import calculate_total_amount
from src.service.booking.domain.domain_event.booking_notification_event import NotificationEvent
from src.service.booking.domain.entity.booking_entity import Booking, BookingStatus


class CreateBookingUseCase:
    """
    Create booking use case - reserve seats and open a RESERVED booking

    Flow:
    1. Validate the request (non-empty, duplicate-free, within the per-booking limit)
    2. Validate showtime (exists, active, not started) and seats (on its screen)
    3. Price every seat by its own tier
    4. Fail fast on unavailable seats, then hold them for SEAT_HOLD_TTL_MINUTES
    5. Persist the booking (RESERVED / PENDING) and cancel bookings whose expired
       holds were reclaimed, all in one transaction
    6. Notify booking.created after commit
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
    async def execute(
        self,
        *,
        user_id: int,
        showtime_id: int,
        seat_ids: List[int],
        payment_method: str,
    ) -> Booking:
        """
        Raises:
            ShowtimeNotFoundError, ShowtimeInactiveError, ShowtimeAlreadyStartedError
            UnknownSeatError: a seat is not an active seat of the showtime's screen
            InvalidSeatTierError: a seat tier has no price for this showtime
            SeatConflictError: a seat is held by another booking or already booked
        """
        if not seat_ids:
            raise DomainError('At least one seat must be selected')
        if len(set(seat_ids)) != len(seat_ids):
            raise DomainError('Duplicate seats in booking request')
        if len(seat_ids) > settings.MAX_SEATS_PER_BOOKING:
            raise DomainError(
                f'Cannot book more than {settings.MAX_SEATS_PER_BOOKING} seats at once'
            )

        booking_id = uuid7()

        with self.tracer.start_as_current_span(
            'use_case.create_booking',
            attributes={
                'booking.id': str(booking_id),
                'showtime.id': showtime_id,
                'seat.count': len(seat_ids),
            },
        ):
            async with self.uow:
                showtime = await self.uow.catalog_query_repo.get_showtime(
                    showtime_id=showtime_id
                )
                if not showtime:
                    raise ShowtimeNotFoundError()
                showtime.validate_bookable(now=utc_now())

                seats = await self.uow.catalog_query_repo.get_seats(
                    screen_id=showtime.screen_id, seat_ids=seat_ids
                )
                seats_by_id = {seat.id: seat for seat in seats if seat.is_active}
                unknown = [seat_id for seat_id in seat_ids if seat_id not in seats_by_id]
                if unknown:
                    raise UnknownSeatError(unknown)

                total_amount = calculate_total_amount(
                    showtime=showtime, seats=[seats_by_id[seat_id] for seat_id in seat_ids]
                )

                # Fail fast before taking any row lock
                unavailable = await self.uow.reservation_ledger.check_available(
                    showtime_id=showtime_id, seat_ids=seat_ids
                )
                if unavailable:
                    raise SeatConflictError(unavailable)

                hold = await self.uow.reservation_ledger.hold(
                    showtime_id=showtime_id,
                    seat_ids=seat_ids,
                    booking_id=booking_id,
                    ttl=timedelta(minutes=settings.SEAT_HOLD_TTL_MINUTES),
                )

                booking = Booking.create(
                    id=booking_id,
                    user_id=user_id,
                    showtime_id=showtime_id,
                    seat_ids=seat_ids,
                    total_amount=total_amount,
                    payment_method=payment_method,
                )
                booking = await self.uow.booking_repo.create(booking=booking)

                evicted = await self._cancel_evicted_bookings(
                    booking_ids=hold.evicted_booking_ids
                )
                await self.uow.commit()

            Logger.base.info(
                f'📝 [CREATE-BOOKING] Booking {booking_id} reserved {len(seat_ids)} seats '
                f'of showtime {showtime_id} for user {user_id}, total {total_amount}'
            )

        await self.notifier.notify(
            uow=self.uow, event=NotificationEvent.BOOKING_CREATED, booking=booking
        )
        for evicted_booking in evicted:
            await self.notifier.notify(
                uow=self.uow,
                event=NotificationEvent.BOOKING_CANCELLED,
                booking=evicted_booking,
                message='Seat hold expired before payment',
            )

        return booking

    async def _cancel_evicted_bookings(self, *, booking_ids: List[UUID]) -> List[Booking]:
        cancelled: List[Booking] = []
        for booking_id in booking_ids:
            booking = await self.uow.booking_repo.get_by_id(booking_id=booking_id)
            if not booking or booking.booking_status != BookingStatus.RESERVED:
                continue
            expired = await self.uow.booking_repo.update(
                booking=booking.expire(), expected=booking
            )
            cancelled.append(expired)
            Logger.base.info(f'⌛ [CREATE-BOOKING] Cancelled expired booking {booking_id}')
        return cancelled

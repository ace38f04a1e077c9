from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.service.booking_notifier import BookingNotifier
from src.service.booking.domain.domain_event.booking_notification_event import NotificationEvent
from src.service.booking.domain.entity.booking_entity import Booking, BookingStatus


class ExpireStaleHoldsUseCase:
    """
    Release expired seat holds and cancel their unpaid bookings

    Hygiene only: expired holds are already treated as available by every read.
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
    async def execute(self) -> List[Booking]:
        with self.tracer.start_as_current_span('use_case.expire_stale_holds'):
            expired: List[Booking] = []
            async with self.uow:
                released = await self.uow.reservation_ledger.sweep_expired()
                for booking_id in released:
                    booking = await self.uow.booking_repo.get_by_id(booking_id=booking_id)
                    if not booking or booking.booking_status != BookingStatus.RESERVED:
                        continue
                    expired.append(
                        await self.uow.booking_repo.update(
                            booking=booking.expire(), expected=booking
                        )
                    )
                await self.uow.commit()

            if released:
                Logger.base.info(
                    f'🧹 [EXPIRE] Released holds of {len(released)} bookings, '
                    f'cancelled {len(expired)}'
                )

        for booking in expired:
            await self.notifier.notify(
                uow=self.uow,
                event=NotificationEvent.BOOKING_CANCELLED,
                booking=booking,
                message='Seat hold expired before payment',
            )
        return expired

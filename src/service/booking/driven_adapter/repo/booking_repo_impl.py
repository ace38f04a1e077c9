from typing import List
from uuid import UUID

from sqlalchemy import select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import BookingStateConflictError
from src.platform.logging.loguru_io import Logger
from src.platform.types.utc_datetime import as_utc
from src.service.booking.app.interface.i_booking_repo import IBookingRepo
from src.service.booking.domain.entity.booking_entity import (
    Booking,
    BookingStatus,
    PaymentStatus,
)
from src.service.booking.driven_adapter.model.booking_model import BookingModel


class BookingRepoImpl(IBookingRepo):
    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_booking: BookingModel) -> Booking:
        return Booking(
            id=db_booking.id,
            user_id=db_booking.user_id,
            showtime_id=db_booking.showtime_id,
            seat_ids=list(db_booking.seat_ids or []),
            total_amount=db_booking.total_amount,
            payment_method=db_booking.payment_method,
            payment_status=PaymentStatus(db_booking.payment_status),
            booking_status=BookingStatus(db_booking.booking_status),
            transaction_id=db_booking.transaction_id,
            created_at=as_utc(db_booking.created_at),
            updated_at=as_utc(db_booking.updated_at),
        )

    @Logger.io
    async def create(self, *, booking: Booking) -> Booking:
        db_booking = BookingModel(
            id=booking.id,
            user_id=booking.user_id,
            showtime_id=booking.showtime_id,
            seat_ids=list(booking.seat_ids),
            total_amount=booking.total_amount,
            payment_method=booking.payment_method,
            payment_status=booking.payment_status.value,
            booking_status=booking.booking_status.value,
            transaction_id=booking.transaction_id,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )
        self.session.add(db_booking)
        await self.session.flush()

        return BookingRepoImpl._to_entity(db_booking)

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .execution_options(populate_existing=True)
        )
        db_booking = result.scalar_one_or_none()

        if not db_booking:
            return None

        return BookingRepoImpl._to_entity(db_booking)

    @Logger.io
    async def list_by_user(self, *, user_id: int) -> List[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.user_id == user_id)
            .order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
            .execution_options(populate_existing=True)
        )
        return [BookingRepoImpl._to_entity(db_booking) for db_booking in result.scalars().all()]

    @Logger.io
    async def update(self, *, booking: Booking, expected: Booking) -> Booking:
        stmt = (
            sql_update(BookingModel)
            .where(BookingModel.id == booking.id)
            .where(BookingModel.booking_status == expected.booking_status.value)
            .where(BookingModel.payment_status == expected.payment_status.value)
            .values(
                booking_status=booking.booking_status.value,
                payment_status=booking.payment_status.value,
                transaction_id=booking.transaction_id,
                updated_at=booking.updated_at,
            )
            .execution_options(synchronize_session=False)
        )

        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise BookingStateConflictError(
                f'Booking {booking.id} was modified concurrently '
                f'(expected {expected.booking_status}/{expected.payment_status})'
            )

        return booking

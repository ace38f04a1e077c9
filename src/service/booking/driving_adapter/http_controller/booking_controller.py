from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.command.process_payment_use_case import ProcessPaymentUseCase
from src.service.booking.app.query.get_booking_details_use_case import (
    GetBookingDetailsUseCase,
)
from src.service.booking.app.query.list_user_bookings_use_case import ListUserBookingsUseCase
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    BookedSeatResponse,
    BookingCreateRequest,
    BookingDetailResponse,
    BookingResponse,
    PaymentRequest,
)
from src.service.shared_kernel.domain.entity.current_user import CurrentUser
from src.service.shared_kernel.driving_adapter.auth.role_auth import get_current_user


router = APIRouter()
tracer = trace.get_tracer(__name__)


def _to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        showtime_id=booking.showtime_id,
        seat_ids=booking.seat_ids,
        total_amount=booking.total_amount,
        payment_method=booking.payment_method,
        payment_status=booking.payment_status.value,
        booking_status=booking.booking_status.value,
        transaction_id=booking.transaction_id,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


@router.get('/my_booking', response_model=List[BookingResponse])
@Logger.io
async def list_my_bookings(
    current_user: CurrentUser = Depends(get_current_user),
    use_case: ListUserBookingsUseCase = Depends(ListUserBookingsUseCase.depends),
) -> List[BookingResponse]:
    bookings = await use_case.execute(user_id=current_user.id)
    return [_to_response(booking) for booking in bookings]


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_booking(
    request: BookingCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    use_case: CreateBookingUseCase = Depends(CreateBookingUseCase.depends),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.create_booking') as span:
        span.set_attribute('showtime_id', request.showtime_id)
        span.set_attribute('user_id', current_user.id)

        booking = await use_case.execute(
            user_id=current_user.id,
            showtime_id=request.showtime_id,
            seat_ids=request.seat_ids,
            payment_method=request.payment_method,
        )

        span.set_attribute('booking.id', str(booking.id))
        return _to_response(booking)


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    use_case: GetBookingDetailsUseCase = Depends(GetBookingDetailsUseCase.depends),
) -> BookingDetailResponse:
    details = await use_case.execute(booking_id=booking_id, requester_user_id=current_user.id)
    showtime = details.showtime

    return BookingDetailResponse(
        **_to_response(details.booking).model_dump(),
        movie_title=showtime.movie_title if showtime else None,
        theater_name=showtime.theater_name if showtime else None,
        start_time=showtime.start_time if showtime else None,
        seats=[
            BookedSeatResponse(id=seat.id, label=seat.label, tier=seat.tier)
            for seat in details.seats
        ],
    )


@router.post('/{booking_id}/pay')
@Logger.io
async def pay_booking(
    booking_id: UUID,
    request: PaymentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    use_case: ProcessPaymentUseCase = Depends(ProcessPaymentUseCase.depends),
) -> BookingResponse:
    booking = await use_case.execute(
        booking_id=booking_id,
        payment_details=request.payment_details,
        buyer_id=current_user.id,
    )
    return _to_response(booking)


@router.patch('/{booking_id}', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_booking(
    booking_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    use_case: CancelBookingUseCase = Depends(CancelBookingUseCase.depends),
) -> BookingResponse:
    booking = await use_case.execute(booking_id=booking_id, requester_user_id=current_user.id)
    return _to_response(booking)

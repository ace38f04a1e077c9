"""
Unit tests for ProcessPaymentUseCase

Tests:
1. Success: booking CONFIRMED / COMPLETED, held seats become booked
2. Gateway failure, timeout and exception: payment FAILED, booking stays RESERVED
3. Already paid, cancelled, unknown payment method, wrong buyer
4. Booking lost its seats while the gateway call was in flight: refund + BookingExpiredError
5. Any store error after the capture: refund, then re-raise
"""

from typing import Any, List, Mapping
from uuid import UUID

import anyio
import attrs
import pytest

from src.platform.exception.exceptions import (
    AlreadyPaidError,
    BookingExpiredError,
    BookingNotFoundError,
    DomainError,
    PaymentGatewayError,
    UnauthorizedError,
)
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.command.process_payment_use_case import ProcessPaymentUseCase
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway, PaymentResult
from src.service.booking.domain.domain_event.booking_notification_event import (
    NotificationEvent,
)
from src.service.booking.domain.entity.booking_entity import (
    Booking,
    BookingStatus,
    PaymentStatus,
)
from src.service.booking.driven_adapter.payment.mock_payment_gateway_impl import (
    MockPaymentGatewayImpl,
)
from src.service.reservation.domain.entity.seat_reservation_entity import ReservationStatus


SHOWTIME_ID = 1
BUYER_ID = 2
CARD = {'card_number': '4111111111111111'}


class SlowGateway(IPaymentGateway):
    async def pay(self, *, amount: int, currency: str, details: Mapping[str, Any]) -> PaymentResult:
        await anyio.sleep(5)
        return PaymentResult(success=True, message='too late', transaction_id='slow_1')

    async def refund(self, *, transaction_id: str, amount: int) -> PaymentResult:
        return PaymentResult(success=True, message='refunded', transaction_id=transaction_id)


class BrokenGateway(IPaymentGateway):
    async def pay(self, *, amount: int, currency: str, details: Mapping[str, Any]) -> PaymentResult:
        raise ConnectionError('gateway unreachable')

    async def refund(self, *, transaction_id: str, amount: int) -> PaymentResult:
        raise ConnectionError('gateway unreachable')


class CapturingGateway(IPaymentGateway):
    def __init__(self) -> None:
        self.refunds: List[str] = []

    async def pay(self, *, amount: int, currency: str, details: Mapping[str, Any]) -> PaymentResult:
        return PaymentResult(success=True, message='captured', transaction_id='tx_1')

    async def refund(self, *, transaction_id: str, amount: int) -> PaymentResult:
        self.refunds.append(transaction_id)
        return PaymentResult(success=True, message='refunded', transaction_id=transaction_id)


class RacingGateway(IPaymentGateway):
    """Captures the payment while another request cancels the booking and frees its seats"""

    def __init__(self, uow) -> None:
        self.uow = uow
        self.refunds: List[str] = []

    async def pay(self, *, amount: int, currency: str, details: Mapping[str, Any]) -> PaymentResult:
        for booking_id, booking in list(self.uow.booking_repo.bookings.items()):
            self.uow.booking_repo.bookings[booking_id] = attrs.evolve(
                booking, booking_status=BookingStatus.CANCELLED
            )
            await self.uow.reservation_ledger.release(booking_id=booking_id)
        return PaymentResult(success=True, message='captured', transaction_id='race_1')

    async def refund(self, *, transaction_id: str, amount: int) -> PaymentResult:
        self.refunds.append(transaction_id)
        return PaymentResult(success=True, message='refunded', transaction_id=transaction_id)


@pytest.fixture
def payment_gateways():
    return {
        'credit_card': MockPaymentGatewayImpl(
            provider='Credit card', transaction_prefix='cc', required_field='card_number'
        ),
        'paypal': MockPaymentGatewayImpl(
            provider='PayPal', transaction_prefix='pp', required_field='paypal_email'
        ),
    }


@pytest.fixture
def use_case(uow, notifier, payment_gateways) -> ProcessPaymentUseCase:
    return ProcessPaymentUseCase(uow=uow, notifier=notifier, payment_gateways=payment_gateways)


@pytest.fixture
def create_booking(uow, notifier):
    async def _create(
        seat_ids: List[int], payment_method: str = 'credit_card', user_id: int = BUYER_ID
    ) -> Booking:
        return await CreateBookingUseCase(uow=uow, notifier=notifier).execute(
            user_id=user_id,
            showtime_id=SHOWTIME_ID,
            seat_ids=seat_ids,
            payment_method=payment_method,
        )

    return _create


def _stored(uow, booking_id: UUID) -> Booking:
    return uow.booking_repo.bookings[booking_id]


class TestPaymentSuccess:
    @pytest.mark.asyncio
    async def test_credit_card_confirms_booking_and_books_seats(
        self, use_case, create_booking, uow, held_rows, notification_sink
    ):
        booking = await create_booking([1, 2, 6])

        paid = await use_case.execute(booking_id=booking.id, payment_details=CARD)

        assert paid.total_amount == 450
        assert paid.booking_status == BookingStatus.CONFIRMED
        assert paid.payment_status == PaymentStatus.COMPLETED
        assert paid.transaction_id.startswith('cc_')
        assert _stored(uow, booking.id) == paid
        assert [row.status for row in held_rows(booking.id)] == [ReservationStatus.BOOKED] * 3
        assert [row.expires_at for row in held_rows(booking.id)] == [None] * 3
        assert notification_sink.event_names == [
            NotificationEvent.BOOKING_CREATED,
            NotificationEvent.PAYMENT_SUCCESS,
            NotificationEvent.BOOKING_CONFIRMED,
        ]
        assert notification_sink.events[1][1].transaction_id == paid.transaction_id

    @pytest.mark.asyncio
    async def test_paypal_uses_its_own_gateway(self, use_case, create_booking):
        booking = await create_booking([4], payment_method='paypal')

        paid = await use_case.execute(
            booking_id=booking.id, payment_details={'paypal_email': 'buyer@paypal.com'}
        )

        assert paid.transaction_id.startswith('pp_')

    @pytest.mark.asyncio
    async def test_retry_after_failure_succeeds(self, use_case, create_booking):
        booking = await create_booking([1])
        with pytest.raises(PaymentGatewayError):
            await use_case.execute(booking_id=booking.id, payment_details={})

        paid = await use_case.execute(booking_id=booking.id, payment_details=CARD)

        assert paid.payment_status == PaymentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_expired_but_unreclaimed_hold_can_still_be_paid(
        self, use_case, create_booking, clock, held_rows
    ):
        booking = await create_booking([3])
        clock.advance(minutes=20)

        paid = await use_case.execute(booking_id=booking.id, payment_details=CARD)

        assert paid.booking_status == BookingStatus.CONFIRMED
        assert held_rows(booking.id)[0].status == ReservationStatus.BOOKED


class TestPaymentFailure:
    @pytest.mark.asyncio
    async def test_declined_payment_marks_failed_and_keeps_hold(
        self, use_case, create_booking, uow, held_rows, notification_sink
    ):
        booking = await create_booking([1, 2])

        with pytest.raises(PaymentGatewayError) as exc_info:
            await use_case.execute(booking_id=booking.id, payment_details={})

        assert exc_info.value.status_code == 402
        assert 'card_number is required' in exc_info.value.message
        stored = _stored(uow, booking.id)
        assert stored.payment_status == PaymentStatus.FAILED
        assert stored.booking_status == BookingStatus.RESERVED
        assert [row.status for row in held_rows(booking.id)] == [ReservationStatus.HELD] * 2
        assert notification_sink.event_names[-1] == NotificationEvent.PAYMENT_FAILED

    @pytest.mark.asyncio
    async def test_gateway_timeout_is_a_failed_payment(self, use_case, create_booking, uow):
        booking = await create_booking([1])

        with pytest.raises(PaymentGatewayError) as exc_info:
            await use_case.execute(
                booking_id=booking.id,
                payment_details=CARD,
                payment_gateway=SlowGateway(),
                timeout=0.01,
            )

        assert 'timed out' in exc_info.value.gateway_message
        assert _stored(uow, booking.id).payment_status == PaymentStatus.FAILED

    @pytest.mark.asyncio
    async def test_gateway_exception_is_a_failed_payment(self, use_case, create_booking, uow):
        booking = await create_booking([1])

        with pytest.raises(PaymentGatewayError) as exc_info:
            await use_case.execute(
                booking_id=booking.id, payment_details=CARD, payment_gateway=BrokenGateway()
            )

        assert exc_info.value.gateway_message == 'gateway unreachable'
        assert _stored(uow, booking.id).payment_status == PaymentStatus.FAILED


class TestPaymentRejected:
    @pytest.mark.asyncio
    async def test_unknown_booking(self, use_case):
        with pytest.raises(BookingNotFoundError):
            await use_case.execute(booking_id=UUID(int=1), payment_details=CARD)

    @pytest.mark.asyncio
    async def test_already_paid(self, use_case, create_booking):
        booking = await create_booking([1])
        await use_case.execute(booking_id=booking.id, payment_details=CARD)

        with pytest.raises(AlreadyPaidError):
            await use_case.execute(booking_id=booking.id, payment_details=CARD)

    @pytest.mark.asyncio
    async def test_unsupported_payment_method(self, use_case, create_booking, uow):
        booking = await create_booking([1], payment_method='bitcoin')

        with pytest.raises(DomainError, match='Unsupported payment method'):
            await use_case.execute(booking_id=booking.id, payment_details=CARD)

        assert _stored(uow, booking.id).payment_status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_other_buyer_cannot_pay(self, use_case, create_booking):
        booking = await create_booking([1])

        with pytest.raises(UnauthorizedError):
            await use_case.execute(booking_id=booking.id, payment_details=CARD, buyer_id=3)

    @pytest.mark.asyncio
    async def test_reclaimed_booking_cannot_be_paid(self, use_case, create_booking, clock):
        stale = await create_booking([1], user_id=3)
        clock.advance(minutes=16)
        await create_booking([1])

        with pytest.raises(DomainError, match='cancelled'):
            await use_case.execute(booking_id=stale.id, payment_details=CARD)


class TestPaymentRace:
    @pytest.mark.asyncio
    async def test_seats_lost_during_payment_are_refunded(
        self, use_case, create_booking, uow, statuses, notification_sink
    ):
        booking = await create_booking([1, 2])
        gateway = RacingGateway(uow)

        with pytest.raises(BookingExpiredError) as exc_info:
            await use_case.execute(
                booking_id=booking.id, payment_details=CARD, payment_gateway=gateway
            )

        assert exc_info.value.status_code == 410
        assert gateway.refunds == ['race_1']
        assert _stored(uow, booking.id).payment_status == PaymentStatus.PENDING
        assert statuses()[1] == ReservationStatus.AVAILABLE
        assert NotificationEvent.PAYMENT_SUCCESS not in notification_sink.event_names

    @pytest.mark.asyncio
    async def test_slow_gateway_within_default_timeout_succeeds(
        self, use_case, create_booking, uow
    ):
        booking = await create_booking([5])

        paid = await use_case.execute(
            booking_id=booking.id,
            payment_details=CARD,
            payment_gateway=MockPaymentGatewayImpl(
                provider='Credit card',
                transaction_prefix='cc',
                required_field='card_number',
                latency_seconds=0.01,
            ),
        )

        assert paid.payment_status == PaymentStatus.COMPLETED


class TestPaymentStoreFailure:
    @pytest.mark.asyncio
    async def test_ledger_error_after_capture_is_refunded(
        self, use_case, create_booking, uow, monkeypatch
    ):
        booking = await create_booking([1, 2])
        gateway = CapturingGateway()

        async def deadlocked_confirm(*, booking_id):
            raise RuntimeError('deadlock detected')

        monkeypatch.setattr(uow.reservation_ledger, 'confirm', deadlocked_confirm)

        with pytest.raises(RuntimeError):
            await use_case.execute(
                booking_id=booking.id, payment_details=CARD, payment_gateway=gateway
            )

        assert gateway.refunds == ['tx_1']
        assert _stored(uow, booking.id).payment_status == PaymentStatus.PENDING
        assert _stored(uow, booking.id).booking_status == BookingStatus.RESERVED

    @pytest.mark.asyncio
    async def test_booking_write_error_after_capture_is_refunded(
        self, use_case, create_booking, uow, held_rows, monkeypatch
    ):
        booking = await create_booking([3])
        gateway = CapturingGateway()

        async def lost_connection(*, booking, expected):
            raise ConnectionError('server closed the connection unexpectedly')

        monkeypatch.setattr(uow.booking_repo, 'update', lost_connection)

        with pytest.raises(ConnectionError):
            await use_case.execute(
                booking_id=booking.id, payment_details=CARD, payment_gateway=gateway
            )

        assert gateway.refunds == ['tx_1']
        # The seat confirmation was rolled back with the failed transaction
        assert [row.status for row in held_rows(booking.id)] == [ReservationStatus.HELD]

    @pytest.mark.asyncio
    async def test_seats_are_confirmed_before_the_booking_row(
        self, use_case, create_booking, uow, monkeypatch
    ):
        booking = await create_booking([4])
        calls: List[str] = []
        confirm = uow.reservation_ledger.confirm
        update = uow.booking_repo.update

        async def recording_confirm(*, booking_id):
            calls.append('ledger.confirm')
            return await confirm(booking_id=booking_id)

        async def recording_update(*, booking, expected):
            calls.append('booking.update')
            return await update(booking=booking, expected=expected)

        monkeypatch.setattr(uow.reservation_ledger, 'confirm', recording_confirm)
        monkeypatch.setattr(uow.booking_repo, 'update', recording_update)

        await use_case.execute(booking_id=booking.id, payment_details=CARD)

        assert calls == ['ledger.confirm', 'booking.update']

from typing import Any, Dict, Mapping, Optional, Self
from uuid import UUID

import anyio
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork, get_unit_of_work
from src.platform.exception.exceptions import (
    AlreadyPaidError,
    BookingExpiredError,
    BookingNotFoundError,
    DomainError,
    PaymentGatewayError,
)
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway, PaymentResult
from src.service.booking.app.service.booking_notifier import BookingNotifier
from src.service.booking.domain.domain_event.booking_notification_event import NotificationEvent
from src.service.booking.domain.entity.booking_entity import (
    Booking,
    BookingStatus,
    PaymentStatus,
)


class ProcessPaymentUseCase:
    """
    Charge a RESERVED booking and confirm it

    Flow:
    1. Validate the booking can be paid (not completed, cancelled or refunded)
    2. Charge through the gateway of the booking's payment method, bounded by a timeout
    3. Failure or timeout: payment_status → FAILED (booking stays RESERVED), notify
       payment.failed, raise PaymentGatewayError
    4. Success: booking → CONFIRMED / COMPLETED and seats held → booked in one
       transaction, then notify payment.success and booking.confirmed

    If the booking lost its seats while the gateway call was in flight (expired and
    reclaimed, or cancelled), the captured payment is refunded and
    BookingExpiredError is raised.
    """

    def __init__(
        self,
        *,
        uow: AbstractUnitOfWork,
        notifier: BookingNotifier,
        payment_gateways: Dict[str, IPaymentGateway],
    ) -> None:
        self.uow = uow
        self.notifier = notifier
        self.payment_gateways = payment_gateways
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow: AbstractUnitOfWork = Depends(get_unit_of_work),
        notifier: BookingNotifier = Depends(Provide[Container.booking_notifier]),
        payment_gateways: Dict[str, IPaymentGateway] = Depends(
            Provide[Container.payment_gateways]
        ),
    ) -> Self:
        return cls(uow=uow, notifier=notifier, payment_gateways=payment_gateways)

    @Logger.io
    async def execute(
        self,
        *,
        booking_id: UUID,
        payment_details: Mapping[str, Any],
        payment_gateway: Optional[IPaymentGateway] = None,
        buyer_id: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Booking:
        with self.tracer.start_as_current_span(
            'use_case.process_payment',
            attributes={'booking.id': str(booking_id)},
        ):
            async with self.uow:
                booking = await self.uow.booking_repo.get_by_id(booking_id=booking_id)
            if not booking:
                raise BookingNotFoundError()
            if buyer_id is not None:
                booking.validate_owner(user_id=buyer_id, action='pay for')
            booking.validate_can_be_paid()

            gateway = payment_gateway or self._resolve_gateway(booking.payment_method)
            result = await self._charge(
                gateway=gateway,
                booking=booking,
                payment_details=payment_details,
                timeout=settings.PAYMENT_TIMEOUT_SECONDS if timeout is None else timeout,
            )

            if not result.success:
                await self._record_failure(booking=booking, message=result.message)
                raise PaymentGatewayError(result.message)

            try:
                confirmed = await self._confirm(booking=booking, result=result)
            except Exception:
                # The money is captured but the booking was not confirmed
                await self._refund(gateway=gateway, booking=booking, result=result)
                raise

        await self.notifier.notify(
            uow=self.uow,
            event=NotificationEvent.PAYMENT_SUCCESS,
            booking=confirmed,
            message=result.message,
        )
        await self.notifier.notify(
            uow=self.uow, event=NotificationEvent.BOOKING_CONFIRMED, booking=confirmed
        )
        return confirmed

    def _resolve_gateway(self, payment_method: str) -> IPaymentGateway:
        try:
            return self.payment_gateways[payment_method]
        except KeyError:
            raise DomainError(f'Unsupported payment method: {payment_method}')

    async def _charge(
        self,
        *,
        gateway: IPaymentGateway,
        booking: Booking,
        payment_details: Mapping[str, Any],
        timeout: float,
    ) -> PaymentResult:
        try:
            with anyio.fail_after(timeout):
                return await gateway.pay(
                    amount=booking.total_amount,
                    currency=settings.PAYMENT_CURRENCY,
                    details=payment_details,
                )
        except TimeoutError:
            Logger.base.warning(
                f'⏱️ [PAYMENT] Gateway timed out after {timeout}s for booking {booking.id}'
            )
            return PaymentResult(success=False, message='Payment gateway timed out')
        except Exception as e:
            Logger.base.exception(f'🚨 [PAYMENT] Gateway error for booking {booking.id}: {e}')
            return PaymentResult(success=False, message=str(e) or 'Payment gateway error')

    async def _confirm(self, *, booking: Booking, result: PaymentResult) -> Booking:
        async with self.uow:
            current = await self.uow.booking_repo.get_by_id(booking_id=booking.id)
            if not current or current.booking_status != BookingStatus.RESERVED:
                raise BookingExpiredError()
            if current.payment_status == PaymentStatus.COMPLETED:
                raise AlreadyPaidError()

            # Seat rows are locked before the booking row, as in hold and sweep
            booked = await self.uow.reservation_ledger.confirm(booking_id=booking.id)
            if booked != len(current.seat_ids):
                raise BookingExpiredError()

            confirmed = await self.uow.booking_repo.update(
                booking=current.mark_as_paid(transaction_id=result.transaction_id),
                expected=current,
            )

            await self.uow.commit()

        Logger.base.info(
            f'💰 [PAYMENT] Booking {booking.id} paid ({result.transaction_id}), '
            f'{booked} seats booked'
        )
        return confirmed

    async def _record_failure(self, *, booking: Booking, message: str) -> None:
        failed = booking
        async with self.uow:
            current = await self.uow.booking_repo.get_by_id(booking_id=booking.id)
            if (
                current
                and current.booking_status == BookingStatus.RESERVED
                and current.payment_status != PaymentStatus.COMPLETED
            ):
                failed = await self.uow.booking_repo.update(
                    booking=current.mark_payment_failed(), expected=current
                )
                await self.uow.commit()

        Logger.base.warning(f'❌ [PAYMENT] Booking {booking.id} payment failed: {message}')
        await self.notifier.notify(
            uow=self.uow, event=NotificationEvent.PAYMENT_FAILED, booking=failed, message=message
        )

    async def _refund(
        self, *, gateway: IPaymentGateway, booking: Booking, result: PaymentResult
    ) -> None:
        if not result.transaction_id:
            return
        try:
            refund = await gateway.refund(
                transaction_id=result.transaction_id, amount=booking.total_amount
            )
        except Exception as e:
            Logger.base.error(
                f'🚨 [PAYMENT] Refund of {result.transaction_id} for booking {booking.id} '
                f'raised: {e}'
            )
            return

        if refund.success:
            Logger.base.info(
                f'💸 [PAYMENT] Refunded {result.transaction_id} for booking {booking.id}'
            )
        else:
            Logger.base.error(
                f'🚨 [PAYMENT] Refund of {result.transaction_id} for booking {booking.id} '
                f'failed: {refund.message}'
            )

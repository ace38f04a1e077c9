from typing import Iterable


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class AuthenticationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


# =============================================================================
# Seat reservation
# =============================================================================


class SeatConflictError(ConflictError):
    def __init__(self, seat_ids: Iterable[int], message: str | None = None) -> None:
        self.seat_ids = sorted(set(seat_ids))
        super().__init__(message or f'Seats not available: {self.seat_ids}')


class UnknownSeatError(DomainError):
    def __init__(self, seat_ids: Iterable[int]) -> None:
        self.seat_ids = sorted(set(seat_ids))
        super().__init__(f'Seats do not belong to this showtime: {self.seat_ids}', 400)


class AlreadyInitializedError(ConflictError):
    pass


# =============================================================================
# Showtime
# =============================================================================


class ShowtimeNotFoundError(NotFoundError):
    def __init__(self, message: str = 'Showtime not found') -> None:
        super().__init__(message)


class ShowtimeInactiveError(DomainError):
    def __init__(self, message: str = 'This showtime is no longer available') -> None:
        super().__init__(message, 400)


class ShowtimeAlreadyStartedError(DomainError):
    def __init__(self, message: str = 'This showtime has already started') -> None:
        super().__init__(message, 400)


class ShowtimeOverlapError(ConflictError):
    pass


class InvalidSeatTierError(DomainError):
    def __init__(self, tier: str) -> None:
        self.tier = tier
        super().__init__(f'No price configured for seat tier: {tier}', 422)


# =============================================================================
# Booking lifecycle
# =============================================================================


class BookingNotFoundError(NotFoundError):
    def __init__(self, message: str = 'Booking not found') -> None:
        super().__init__(message)


class UnauthorizedError(ForbiddenError):
    pass


class AlreadyPaidError(ConflictError):
    def __init__(self, message: str = 'Payment has already been processed for this booking') -> None:
        super().__init__(message)


class CancellationWindowClosedError(DomainError):
    def __init__(self, cutoff_hours: int) -> None:
        self.cutoff_hours = cutoff_hours
        super().__init__(
            f'Cannot cancel booking less than {cutoff_hours} hours before showtime', 400
        )


class BookingStateConflictError(ConflictError):
    pass


class BookingExpiredError(CustomBaseError):
    def __init__(self, message: str = 'Seat hold for this booking has expired') -> None:
        super().__init__(message, 410)


class PaymentGatewayError(CustomBaseError):
    def __init__(self, gateway_message: str) -> None:
        self.gateway_message = gateway_message
        super().__init__(f'Payment failed: {gateway_message}', 402)

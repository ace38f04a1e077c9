"""
Reservation Ledger - per (showtime, seat) availability

Every multi-row operation (hold, confirm, release, expiry sweep) is an
optimistic read → compare-and-swap loop:
1. Read the affected rows (with their versions)
2. Validate and compute the new row states
3. compare_and_swap the whole set; a stale version means another request won
   the race, so re-read and decide again

Expired holds are treated as available on every read, so correctness never
depends on the sweep having run.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List
from uuid import UUID

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import (
    AlreadyInitializedError,
    SeatConflictError,
    UnknownSeatError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.utc_datetime import utc_now
from src.service.reservation.app.dto.hold_result import HoldResult
from src.service.reservation.app.interface.i_seat_reservation_repo import ISeatReservationRepo
from src.service.reservation.domain.entity.seat_reservation_entity import (
    ReservationStatus,
    SeatReservation,
)


class ReservationLedger:
    def __init__(
        self,
        *,
        seat_reservation_repo: ISeatReservationRepo,
        max_retries: int = settings.LEDGER_MAX_RETRIES,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.seat_reservation_repo = seat_reservation_repo
        self.max_retries = max(1, max_retries)
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def initialize(self, *, showtime_id: int, seat_ids: Iterable[int]) -> List[SeatReservation]:
        if await self.seat_reservation_repo.exists_for_showtime(showtime_id=showtime_id):
            raise AlreadyInitializedError(
                f'Seat reservations already initialized for showtime {showtime_id}'
            )

        reservations = [
            SeatReservation(showtime_id=showtime_id, seat_id=seat_id)
            for seat_id in dict.fromkeys(seat_ids)
        ]
        await self.seat_reservation_repo.create_many(reservations=reservations)
        Logger.base.info(
            f'🎟️ [LEDGER] Initialized {len(reservations)} seats for showtime {showtime_id}'
        )
        return reservations

    @Logger.io
    async def check_available(self, *, showtime_id: int, seat_ids: Iterable[int]) -> List[int]:
        """Return the requested seats that are currently not available"""
        requested = list(dict.fromkeys(seat_ids))
        rows = await self._get_known_rows(showtime_id=showtime_id, seat_ids=requested)
        now = self.clock()
        return [seat_id for seat_id in requested if not rows[seat_id].is_available(now=now)]

    @Logger.io
    async def hold(
        self,
        *,
        showtime_id: int,
        seat_ids: Iterable[int],
        booking_id: UUID,
        ttl: timedelta,
    ) -> HoldResult:
        """
        Hold exactly the requested seats for booking_id until now + ttl

        Raises:
            UnknownSeatError: a seat has no ledger row for this showtime
            SeatConflictError: a seat is booked or held by another unexpired booking
        """
        requested = list(dict.fromkeys(seat_ids))
        requested_set = set(requested)
        stale: List[int] = []

        with self.tracer.start_as_current_span(
            'ledger.hold',
            attributes={
                'showtime.id': showtime_id,
                'booking.id': str(booking_id),
                'seat.count': len(requested),
            },
        ):
            for attempt in range(1, self.max_retries + 1):
                rows = await self._get_known_rows(showtime_id=showtime_id, seat_ids=requested)
                now = self.clock()

                conflicts = [
                    seat_id
                    for seat_id in requested
                    if not rows[seat_id].is_holdable_by(booking_id=booking_id, now=now)
                ]
                if conflicts:
                    raise SeatConflictError(conflicts)

                expires_at = now + ttl
                changes = [
                    rows[seat_id].hold(booking_id=booking_id, expires_at=expires_at)
                    for seat_id in requested
                ]

                # Reclaiming an expired hold evicts the whole stale booking
                evicted = sorted(
                    {
                        row.booking_id
                        for row in rows.values()
                        if row.booking_id is not None
                        and row.booking_id != booking_id
                        and row.is_expired_hold(now=now)
                    },
                    key=str,
                )
                for evicted_booking_id in evicted:
                    siblings = await self.seat_reservation_repo.list_by_booking(
                        booking_id=evicted_booking_id
                    )
                    changes.extend(
                        sibling.release()
                        for sibling in siblings
                        if sibling.seat_id not in requested_set
                    )

                stale = await self.seat_reservation_repo.compare_and_swap(reservations=changes)
                if not stale:
                    if evicted:
                        Logger.base.info(
                            f'⌛ [LEDGER] Reclaimed expired holds of bookings {[str(b) for b in evicted]}'
                        )
                    Logger.base.info(
                        f'🔒 [LEDGER] Held {len(requested)} seats of showtime {showtime_id} '
                        f'for booking {booking_id} until {expires_at.isoformat()}'
                    )
                    return HoldResult(
                        booking_id=booking_id,
                        expires_at=expires_at,
                        reservations=changes[: len(requested)],
                        evicted_booking_ids=list(evicted),
                    )

                Logger.base.warning(
                    f'🔁 [LEDGER] Hold contention on seats {stale} '
                    f'(attempt {attempt}/{self.max_retries}), retrying'
                )

        raise SeatConflictError(stale, 'Seats are being reserved by another request')

    @Logger.io
    async def confirm(self, *, booking_id: UUID) -> int:
        """
        held → booked for every row of the booking (idempotent)

        Returns:
            Number of rows owned by the booking after the call
        """
        stale: List[int] = []
        for attempt in range(1, self.max_retries + 1):
            rows = await self.seat_reservation_repo.list_by_booking(booking_id=booking_id)
            pending = [row for row in rows if row.status == ReservationStatus.HELD]
            if not pending:
                return len(rows)

            stale = await self.seat_reservation_repo.compare_and_swap(
                reservations=[row.confirm() for row in pending]
            )
            if not stale:
                Logger.base.info(f'✅ [LEDGER] Booked {len(rows)} seats for booking {booking_id}')
                return len(rows)

            Logger.base.warning(
                f'🔁 [LEDGER] Confirm contention for booking {booking_id} '
                f'(attempt {attempt}/{self.max_retries}), retrying'
            )

        raise SeatConflictError(stale, f'Could not confirm seats of booking {booking_id}')

    @Logger.io
    async def release(self, *, booking_id: UUID) -> int:
        """
        Return every row of the booking to available

        Returns:
            Number of rows released
        """
        stale: List[int] = []
        for attempt in range(1, self.max_retries + 1):
            rows = await self.seat_reservation_repo.list_by_booking(booking_id=booking_id)
            if not rows:
                return 0

            stale = await self.seat_reservation_repo.compare_and_swap(
                reservations=[row.release() for row in rows]
            )
            if not stale:
                Logger.base.info(f'🔓 [LEDGER] Released {len(rows)} seats of booking {booking_id}')
                return len(rows)

            Logger.base.warning(
                f'🔁 [LEDGER] Release contention for booking {booking_id} '
                f'(attempt {attempt}/{self.max_retries}), retrying'
            )

        raise SeatConflictError(stale, f'Could not release seats of booking {booking_id}')

    @Logger.io
    async def sweep_expired(self) -> List[UUID]:
        """
        Release every expired hold, one booking at a time

        A booking is skipped when any of its rows is no longer an expired hold
        (it was confirmed or re-held after the listing).

        Returns:
            Ids of the bookings whose seats were released
        """
        now = self.clock()
        expired = await self.seat_reservation_repo.list_expired_holds(now=now)
        booking_ids = sorted({row.booking_id for row in expired if row.booking_id}, key=str)

        released: List[UUID] = []
        for booking_id in booking_ids:
            if await self._release_if_expired(booking_id=booking_id, now=now):
                released.append(booking_id)

        if released:
            Logger.base.info(f'🧹 [LEDGER] Swept expired holds of {len(released)} bookings')
        return released

    @Logger.io
    async def get_effective_statuses(self, *, showtime_id: int) -> Dict[int, ReservationStatus]:
        now = self.clock()
        rows = await self.seat_reservation_repo.list_by_showtime(showtime_id=showtime_id)
        return {row.seat_id: row.effective_status(now=now) for row in rows}

    @Logger.io
    async def discard(self, *, showtime_id: int) -> bool:
        """
        Delete every row of the showtime, provided none is held or booked

        Returns False when a row is (or just became) held or booked. Available rows
        may already be deleted at that point, so the caller must roll back.
        """
        rows = await self.seat_reservation_repo.list_by_showtime(showtime_id=showtime_id)
        if any(row.status != ReservationStatus.AVAILABLE for row in rows):
            return False

        deleted = await self.seat_reservation_repo.delete_available_by_showtime(
            showtime_id=showtime_id
        )
        if deleted != len(rows):
            Logger.base.warning(
                f'🔁 [LEDGER] Showtime {showtime_id} was reserved while being discarded '
                f'({deleted}/{len(rows)} rows available)'
            )
            return False

        Logger.base.info(f'🗑️ [LEDGER] Discarded {deleted} seats of showtime {showtime_id}')
        return True

    async def _release_if_expired(self, *, booking_id: UUID, now: datetime) -> bool:
        for _ in range(self.max_retries):
            rows = await self.seat_reservation_repo.list_by_booking(booking_id=booking_id)
            if not rows or not all(row.is_expired_hold(now=now) for row in rows):
                return False

            stale = await self.seat_reservation_repo.compare_and_swap(
                reservations=[row.release() for row in rows]
            )
            if not stale:
                return True

        Logger.base.warning(f'🔁 [LEDGER] Gave up sweeping booking {booking_id} after contention')
        return False

    async def _get_known_rows(
        self, *, showtime_id: int, seat_ids: List[int]
    ) -> Dict[int, SeatReservation]:
        rows = await self.seat_reservation_repo.get_by_seats(
            showtime_id=showtime_id, seat_ids=seat_ids
        )
        by_seat = {row.seat_id: row for row in rows}
        unknown = [seat_id for seat_id in seat_ids if seat_id not in by_seat]
        if unknown:
            raise UnknownSeatError(unknown)
        return by_seat

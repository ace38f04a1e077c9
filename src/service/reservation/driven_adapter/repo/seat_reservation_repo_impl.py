"""
Seat Reservation Repository Implementation (SQLAlchemy)

compare_and_swap locks the touched rows with SELECT ... FOR UPDATE in
(showtime_id, seat_id) order, compares every version and only then writes, so a
stale row leaves the whole set untouched. Backends without row locks (SQLite)
serialize writers on the database lock instead.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.platform.types.utc_datetime import as_utc
from src.service.reservation.app.interface.i_seat_reservation_repo import ISeatReservationRepo
from src.service.reservation.domain.entity.seat_reservation_entity import (
    ReservationStatus,
    SeatReservation,
)
from src.service.reservation.driven_adapter.model.seat_reservation_model import (
    SeatReservationModel,
)


class SeatReservationRepoImpl(ISeatReservationRepo):
    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_row: SeatReservationModel) -> SeatReservation:
        return SeatReservation(
            showtime_id=db_row.showtime_id,
            seat_id=db_row.seat_id,
            status=ReservationStatus(db_row.status),
            booking_id=db_row.booking_id,
            expires_at=as_utc(db_row.expires_at),
            version=db_row.version,
        )

    async def _fetch(self, stmt) -> List[SeatReservation]:
        # Rows may already sit in the identity map with an older state
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return [self._to_entity(db_row) for db_row in result.scalars().all()]

    @Logger.io
    async def create_many(self, *, reservations: List[SeatReservation]) -> None:
        self.session.add_all(
            [
                SeatReservationModel(
                    showtime_id=reservation.showtime_id,
                    seat_id=reservation.seat_id,
                    status=reservation.status.value,
                    booking_id=reservation.booking_id,
                    expires_at=reservation.expires_at,
                    version=reservation.version,
                )
                for reservation in reservations
            ]
        )
        await self.session.flush()

    @Logger.io
    async def exists_for_showtime(self, *, showtime_id: int) -> bool:
        result = await self.session.execute(
            select(SeatReservationModel.seat_id)
            .where(SeatReservationModel.showtime_id == showtime_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    @Logger.io
    async def get_by_seats(
        self, *, showtime_id: int, seat_ids: List[int]
    ) -> List[SeatReservation]:
        if not seat_ids:
            return []
        return await self._fetch(
            select(SeatReservationModel)
            .where(SeatReservationModel.showtime_id == showtime_id)
            .where(SeatReservationModel.seat_id.in_(seat_ids))
            .order_by(SeatReservationModel.seat_id)
        )

    @Logger.io
    async def list_by_showtime(self, *, showtime_id: int) -> List[SeatReservation]:
        return await self._fetch(
            select(SeatReservationModel)
            .where(SeatReservationModel.showtime_id == showtime_id)
            .order_by(SeatReservationModel.seat_id)
        )

    @Logger.io
    async def list_by_booking(self, *, booking_id: UUID) -> List[SeatReservation]:
        return await self._fetch(
            select(SeatReservationModel)
            .where(SeatReservationModel.booking_id == booking_id)
            .order_by(SeatReservationModel.showtime_id, SeatReservationModel.seat_id)
        )

    @Logger.io
    async def list_expired_holds(self, *, now: datetime) -> List[SeatReservation]:
        return await self._fetch(
            select(SeatReservationModel)
            .where(SeatReservationModel.status == ReservationStatus.HELD.value)
            .where(SeatReservationModel.expires_at < now)
            .order_by(SeatReservationModel.showtime_id, SeatReservationModel.seat_id)
        )

    @Logger.io
    async def compare_and_swap(self, *, reservations: List[SeatReservation]) -> List[int]:
        by_showtime: Dict[int, Dict[int, SeatReservation]] = defaultdict(dict)
        for reservation in reservations:
            by_showtime[reservation.showtime_id][reservation.seat_id] = reservation

        # Lock and compare everything before the first write
        locked: Dict[tuple[int, int], SeatReservationModel] = {}
        stale: List[int] = []
        for showtime_id in sorted(by_showtime):
            wanted = by_showtime[showtime_id]
            result = await self.session.execute(
                select(SeatReservationModel)
                .where(SeatReservationModel.showtime_id == showtime_id)
                .where(SeatReservationModel.seat_id.in_(list(wanted)))
                .order_by(SeatReservationModel.seat_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            stored = {db_row.seat_id: db_row for db_row in result.scalars().all()}

            for seat_id, reservation in wanted.items():
                db_row = stored.get(seat_id)
                if db_row is None or db_row.version != reservation.version:
                    stale.append(seat_id)
                else:
                    locked[(showtime_id, seat_id)] = db_row

        if stale:
            return sorted(stale)

        for (showtime_id, seat_id), db_row in locked.items():
            reservation = by_showtime[showtime_id][seat_id]
            db_row.status = reservation.status.value
            db_row.booking_id = reservation.booking_id
            db_row.expires_at = reservation.expires_at
            db_row.version = reservation.version + 1

        await self.session.flush()
        return []

    @Logger.io
    async def delete_available_by_showtime(self, *, showtime_id: int) -> int:
        # Rows locked by a concurrent hold are re-checked after it commits
        result = await self.session.execute(
            delete(SeatReservationModel)
            .where(SeatReservationModel.showtime_id == showtime_id)
            .where(SeatReservationModel.status == ReservationStatus.AVAILABLE.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

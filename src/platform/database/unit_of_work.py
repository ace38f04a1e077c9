"""
Unit of Work Pattern - one database session shared by every repository

Architecture:
- UoW owns the session lifecycle and commit/rollback
- Repositories (and the reservation ledger) get the shared session through the UoW
- Use cases coordinate booking, ledger and catalog writes inside one UoW, so a
  booking and its seat rows always commit or roll back together
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.orm_db_setting import get_async_session


if TYPE_CHECKING:
    from src.service.booking.app.interface.i_booking_repo import IBookingRepo
    from src.service.booking.app.interface.i_user_contact_query_repo import (
        IUserContactQueryRepo,
    )
    from src.service.catalog.app.interface.i_catalog_query_repo import ICatalogQueryRepo
    from src.service.catalog.app.interface.i_showtime_command_repo import (
        IShowtimeCommandRepo,
    )
    from src.service.reservation.app.interface.i_seat_reservation_repo import (
        ISeatReservationRepo,
    )
    from src.service.reservation.app.reservation_ledger import ReservationLedger


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the booking core

    Usage:
        async with uow:
            booking = await uow.booking_repo.create(booking=...)
            await uow.reservation_ledger.hold(...)
            await uow.commit()
    """

    # Booking repositories
    booking_repo: IBookingRepo
    user_contact_query_repo: IUserContactQueryRepo

    # Catalog repositories
    catalog_query_repo: ICatalogQueryRepo
    showtime_command_repo: IShowtimeCommandRepo

    # Reservation ledger (and its storage)
    seat_reservation_repo: ISeatReservationRepo
    reservation_ledger: ReservationLedger

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args):
        # No-op after a successful commit
        await self.rollback()

    async def commit(self):
        """Commit the transaction"""
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    SQLAlchemy implementation of Unit of Work

    Usage in use case:
        async with uow:
            booking = await uow.booking_repo.get_by_id(booking_id=...)
            await uow.commit()
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        from src.service.booking.driven_adapter.repo.booking_repo_impl import BookingRepoImpl
        from src.service.booking.driven_adapter.repo.user_contact_query_repo_impl import (
            UserContactQueryRepoImpl,
        )
        from src.service.catalog.driven_adapter.repo.catalog_query_repo_impl import (
            CatalogQueryRepoImpl,
        )
        from src.service.catalog.driven_adapter.repo.showtime_command_repo_impl import (
            ShowtimeCommandRepoImpl,
        )
        from src.service.reservation.app.reservation_ledger import ReservationLedger
        from src.service.reservation.driven_adapter.repo.seat_reservation_repo_impl import (
            SeatReservationRepoImpl,
        )

        # Create repositories with shared session
        self.booking_repo = BookingRepoImpl(self.session)
        self.user_contact_query_repo = UserContactQueryRepoImpl(self.session)
        self.catalog_query_repo = CatalogQueryRepoImpl(self.session)
        self.showtime_command_repo = ShowtimeCommandRepoImpl(self.session)
        self.seat_reservation_repo = SeatReservationRepoImpl(self.session)
        self.reservation_ledger = ReservationLedger(
            seat_reservation_repo=self.seat_reservation_repo
        )

        return await super().__aenter__()

    async def __aexit__(self, *args):
        await super().__aexit__(*args)
        # Note: session cleanup handled by get_async_session context manager

    async def _commit(self):
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


def get_unit_of_work(
    session: AsyncSession = Depends(get_async_session),
) -> AbstractUnitOfWork:
    """
    FastAPI dependency for Unit of Work

    Usage:
        async def create_booking(uow: AbstractUnitOfWork = Depends(get_unit_of_work)):
            async with uow:
                booking = await uow.booking_repo.create(...)
                await uow.commit()
    """
    return SqlAlchemyUnitOfWork(session)

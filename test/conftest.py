"""
Test Configuration and Fixtures

This module provides:
- Test environment (in-memory SQLite, no background sweep, test log dir)
- In-memory repositories and a snapshot-based Unit of Work for unit tests
- SQLite engine/session fixtures for adapter (integration) tests
- FastAPI TestClient with JWT helpers for API tests

Architecture:
- Unit tests (test/**/unit/): in-memory fakes, a controllable clock
- Integration tests (test/**/integration/): real SQLAlchemy adapters on SQLite
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    os.environ['DATABASE_URL'] = 'sqlite+aiosqlite://'
    os.environ['HOLD_SWEEP_INTERVAL_SECONDS'] = '0'
    os.environ['SECRET_KEY'] = 'test_secret_key'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)


_early_setup_test_environment()

from collections.abc import AsyncIterator, Awaitable, Callable, Generator  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Dict, List, Tuple  # noqa: E402
from uuid import UUID  # noqa: E402

import anyio  # noqa: E402
import attrs  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.platform.app_factory import create_app  # noqa: E402
from src.platform.config.di import container  # noqa: E402
from src.platform.config.wire_modules import WIRE_MODULES  # noqa: E402
from src.platform.database.orm_db_setting import (  # noqa: E402
    create_db_and_tables,
    get_session_maker,
)
from src.platform.database.unit_of_work import AbstractUnitOfWork  # noqa: E402
from src.platform.exception.exceptions import BookingStateConflictError  # noqa: E402
from src.platform.types.utc_datetime import utc_now  # noqa: E402
from src.service.booking.app.interface.i_booking_repo import IBookingRepo  # noqa: E402
from src.service.booking.app.interface.i_notification_sink import (  # noqa: E402
    INotificationSink,
)
from src.service.booking.app.interface.i_user_contact_query_repo import (  # noqa: E402
    IUserContactQueryRepo,
)
from src.service.booking.app.service.booking_notifier import BookingNotifier  # noqa: E402
from src.service.booking.domain.domain_event.booking_notification_event import (  # noqa: E402
    BookingNotification,
    NotificationEvent,
)
from src.service.booking.domain.entity.booking_entity import Booking  # noqa: E402
from src.service.booking.domain.entity.user_contact_entity import UserContact  # noqa: E402
from src.service.booking.driven_adapter.model.user_model import UserModel  # noqa: E402
from src.service.catalog.app.interface.i_catalog_query_repo import (  # noqa: E402
    ICatalogQueryRepo,
)
from src.service.catalog.app.interface.i_showtime_command_repo import (  # noqa: E402
    IShowtimeCommandRepo,
)
from src.service.catalog.domain.entity.seat_entity import Seat  # noqa: E402
from src.service.catalog.domain.entity.showtime_entity import Movie, Showtime  # noqa: E402
from src.service.catalog.driven_adapter.model.catalog_model import (  # noqa: E402
    MovieModel,
    ScreenModel,
    SeatModel,
    ShowtimeModel,
    TheaterModel,
)
from src.service.reservation.app.interface.i_seat_reservation_repo import (  # noqa: E402
    ISeatReservationRepo,
)
from src.service.reservation.app.reservation_ledger import ReservationLedger  # noqa: E402
from src.service.reservation.domain.entity.seat_reservation_entity import (  # noqa: E402
    ReservationStatus,
    SeatReservation,
)
from src.service.reservation.driven_adapter.model.seat_reservation_model import (  # noqa: E402
    SeatReservationModel,
)
from src.service.shared_kernel.domain.entity.current_user import (  # noqa: E402
    CurrentUser,
    UserRole,
)
from src.service.shared_kernel.driving_adapter.auth.jwt_auth import JwtAuth  # noqa: E402


# =============================================================================
# Catalog layout shared by unit and integration tests
# Screen 1: A1-A3 standard, B1-B2 premium, C1 vip
# =============================================================================
SCREEN_ID = 1
MOVIE_ID = 1
SHOWTIME_ID = 1
BUYER_ID = 2
ANOTHER_BUYER_ID = 3
ADMIN_ID = 1
PRICES = {'standard': 100, 'premium': 150, 'vip': 250}
SEAT_LAYOUT: List[Tuple[int, str, int, str]] = [
    (1, 'A', 1, 'standard'),
    (2, 'A', 2, 'standard'),
    (3, 'A', 3, 'standard'),
    (4, 'B', 1, 'premium'),
    (5, 'B', 2, 'premium'),
    (6, 'C', 1, 'vip'),
]
ALL_SEAT_IDS = [seat_id for seat_id, *_ in SEAT_LAYOUT]


# =============================================================================
# In-memory fakes
# =============================================================================
class FakeClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemorySeatReservationRepo(ISeatReservationRepo):
    """Versioned rows; reads yield to the event loop so concurrent callers interleave"""

    def __init__(self) -> None:
        self.rows: Dict[Tuple[int, int], SeatReservation] = {}
        self.cas_attempts = 0
        self._lock = anyio.Lock()

    async def create_many(self, *, reservations: List[SeatReservation]) -> None:
        for reservation in reservations:
            if reservation.key in self.rows:
                raise ValueError(f'Duplicate ledger row {reservation.key}')
            self.rows[reservation.key] = reservation

    async def exists_for_showtime(self, *, showtime_id: int) -> bool:
        return any(key[0] == showtime_id for key in self.rows)

    async def get_by_seats(
        self, *, showtime_id: int, seat_ids: List[int]
    ) -> List[SeatReservation]:
        await anyio.sleep(0)
        return [
            self.rows[(showtime_id, seat_id)]
            for seat_id in sorted(set(seat_ids))
            if (showtime_id, seat_id) in self.rows
        ]

    async def list_by_showtime(self, *, showtime_id: int) -> List[SeatReservation]:
        await anyio.sleep(0)
        return sorted(
            (row for row in self.rows.values() if row.showtime_id == showtime_id),
            key=lambda row: row.seat_id,
        )

    async def list_by_booking(self, *, booking_id: UUID) -> List[SeatReservation]:
        await anyio.sleep(0)
        return sorted(
            (row for row in self.rows.values() if row.booking_id == booking_id),
            key=lambda row: row.key,
        )

    async def list_expired_holds(self, *, now: datetime) -> List[SeatReservation]:
        await anyio.sleep(0)
        return sorted(
            (row for row in self.rows.values() if row.is_expired_hold(now=now)),
            key=lambda row: row.key,
        )

    async def compare_and_swap(self, *, reservations: List[SeatReservation]) -> List[int]:
        async with self._lock:
            self.cas_attempts += 1
            stale = sorted(
                reservation.seat_id
                for reservation in reservations
                if reservation.key not in self.rows
                or self.rows[reservation.key].version != reservation.version
            )
            if stale:
                return stale
            for reservation in reservations:
                self.rows[reservation.key] = attrs.evolve(
                    reservation, version=reservation.version + 1
                )
            return []

    async def delete_available_by_showtime(self, *, showtime_id: int) -> int:
        await anyio.sleep(0)
        keys = [
            key
            for key, row in self.rows.items()
            if key[0] == showtime_id and row.status == ReservationStatus.AVAILABLE
        ]
        for key in keys:
            del self.rows[key]
        return len(keys)


class InMemoryBookingRepo(IBookingRepo):
    def __init__(self) -> None:
        self.bookings: Dict[UUID, Booking] = {}

    async def create(self, *, booking: Booking) -> Booking:
        self.bookings[booking.id] = booking
        return booking

    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        return self.bookings.get(booking_id)

    async def list_by_user(self, *, user_id: int) -> List[Booking]:
        return sorted(
            (booking for booking in self.bookings.values() if booking.user_id == user_id),
            key=lambda booking: (booking.created_at, str(booking.id)),
            reverse=True,
        )

    async def update(self, *, booking: Booking, expected: Booking) -> Booking:
        stored = self.bookings.get(booking.id)
        if (
            stored is None
            or stored.booking_status != expected.booking_status
            or stored.payment_status != expected.payment_status
        ):
            raise BookingStateConflictError(f'Booking {booking.id} was modified concurrently')
        self.bookings[booking.id] = booking
        return booking


class InMemoryCatalogRepo(ICatalogQueryRepo, IShowtimeCommandRepo):
    def __init__(self) -> None:
        self.movies: Dict[int, Movie] = {}
        self.seats: Dict[int, Seat] = {}
        self.showtimes: Dict[int, Showtime] = {}

    async def get_showtime(self, *, showtime_id: int) -> Showtime | None:
        return self.showtimes.get(showtime_id)

    async def get_seats(self, *, screen_id: int, seat_ids: List[int]) -> List[Seat]:
        return [
            self.seats[seat_id]
            for seat_id in sorted(set(seat_ids))
            if seat_id in self.seats and self.seats[seat_id].screen_id == screen_id
        ]

    async def list_active_seats(self, *, screen_id: int) -> List[Seat]:
        return sorted(
            (
                seat
                for seat in self.seats.values()
                if seat.screen_id == screen_id and seat.is_active
            ),
            key=lambda seat: (seat.row, seat.number),
        )

    async def get_movie(self, *, movie_id: int) -> Movie | None:
        return self.movies.get(movie_id)

    async def create(self, *, showtime: Showtime) -> Showtime:
        created = attrs.evolve(showtime, id=max(self.showtimes, default=0) + 1)
        self.showtimes[created.id] = created
        return created

    async def find_overlapping(
        self, *, screen_id: int, start_time: datetime, end_time: datetime
    ) -> List[Showtime]:
        return [
            showtime
            for showtime in self.showtimes.values()
            if showtime.screen_id == screen_id
            and showtime.is_active
            and showtime.overlaps(start_time=start_time, end_time=end_time)
        ]

    async def deactivate(self, *, showtime_id: int) -> None:
        self.showtimes[showtime_id] = attrs.evolve(
            self.showtimes[showtime_id], is_active=False
        )

    async def delete(self, *, showtime_id: int) -> None:
        self.showtimes.pop(showtime_id, None)


class InMemoryUserContactQueryRepo(IUserContactQueryRepo):
    def __init__(self) -> None:
        self.contacts: Dict[int, UserContact] = {}

    async def get_contact(self, *, user_id: int) -> UserContact | None:
        return self.contacts.get(user_id)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Snapshots every store on enter; rollback without commit restores it"""

    def __init__(self, *, clock: FakeClock) -> None:
        self.seat_reservation_repo = InMemorySeatReservationRepo()
        self.booking_repo = InMemoryBookingRepo()
        catalog = InMemoryCatalogRepo()
        self.catalog_query_repo = catalog
        self.showtime_command_repo = catalog
        self.user_contact_query_repo = InMemoryUserContactQueryRepo()
        self.reservation_ledger = ReservationLedger(
            seat_reservation_repo=self.seat_reservation_repo, clock=clock
        )
        self.commits = 0
        self.rollbacks = 0
        self._snapshot: Dict[str, dict] | None = None

    @property
    def catalog(self) -> InMemoryCatalogRepo:
        return self.showtime_command_repo  # type: ignore[return-value]

    def _stores(self) -> Dict[str, dict]:
        return {
            'rows': self.seat_reservation_repo.rows,
            'bookings': self.booking_repo.bookings,
            'showtimes': self.catalog.showtimes,
        }

    async def __aenter__(self) -> AbstractUnitOfWork:
        self._snapshot = {name: dict(store) for name, store in self._stores().items()}
        return await super().__aenter__()

    async def _commit(self) -> None:
        self.commits += 1
        self._snapshot = None

    async def rollback(self) -> None:
        if self._snapshot is None:
            return
        self.rollbacks += 1
        for name, store in self._stores().items():
            store.clear()
            store.update(self._snapshot[name])
        self._snapshot = None


class RecordingNotificationSink(INotificationSink):
    def __init__(self) -> None:
        self.events: List[Tuple[NotificationEvent, BookingNotification]] = []

    async def notify(self, *, event: NotificationEvent, payload: BookingNotification) -> None:
        self.events.append((event, payload))

    @property
    def event_names(self) -> List[NotificationEvent]:
        return [event for event, _ in self.events]


# =============================================================================
# Unit test fixtures
# =============================================================================
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def uow(clock: FakeClock) -> InMemoryUnitOfWork:
    """Unit of Work seeded with one movie, screen 1 and a showtime one day ahead"""
    unit_of_work = InMemoryUnitOfWork(clock=clock)
    catalog = unit_of_work.catalog

    catalog.movies[MOVIE_ID] = Movie(id=MOVIE_ID, title='Inception', duration_minutes=148)
    for seat_id, row, number, tier in SEAT_LAYOUT:
        catalog.seats[seat_id] = Seat(
            id=seat_id, screen_id=SCREEN_ID, row=row, number=number, tier=tier
        )
    start_time = clock.now + timedelta(days=1)
    catalog.showtimes[SHOWTIME_ID] = Showtime(
        id=SHOWTIME_ID,
        movie_id=MOVIE_ID,
        screen_id=SCREEN_ID,
        start_time=start_time,
        end_time=start_time + timedelta(minutes=178),
        prices=dict(PRICES),
        movie_title='Inception',
        theater_name='Galaxy Nguyen Du',
    )
    for seat_id in ALL_SEAT_IDS:
        unit_of_work.seat_reservation_repo.rows[(SHOWTIME_ID, seat_id)] = SeatReservation(
            showtime_id=SHOWTIME_ID, seat_id=seat_id
        )
    unit_of_work.user_contact_query_repo.contacts[BUYER_ID] = UserContact(
        id=BUYER_ID, email='buyer@test.com', name='Test Buyer', phone='+84900000002'
    )
    return unit_of_work


@pytest.fixture
def ledger(uow: InMemoryUnitOfWork) -> ReservationLedger:
    return uow.reservation_ledger


@pytest.fixture
def notification_sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def notifier(notification_sink: RecordingNotificationSink) -> BookingNotifier:
    return BookingNotifier(notification_sink=notification_sink)


@pytest.fixture
def set_showtime_start(uow: InMemoryUnitOfWork) -> Callable[[datetime], Showtime]:
    def _set(start_time: datetime) -> Showtime:
        showtime = attrs.evolve(
            uow.catalog.showtimes[SHOWTIME_ID],
            start_time=start_time,
            end_time=start_time + timedelta(minutes=178),
        )
        uow.catalog.showtimes[SHOWTIME_ID] = showtime
        return showtime

    return _set


# =============================================================================
# SQLite fixtures (integration tests)
# =============================================================================
async def seed_catalog(session: AsyncSession, *, start_time: datetime | None = None) -> None:
    """Theater, screen 1 with SEAT_LAYOUT, a movie, users and showtime 1 with ledger rows"""
    start_time = start_time or (datetime.now(timezone.utc) + timedelta(days=1))

    session.add(TheaterModel(id=1, name='Galaxy Nguyen Du'))
    session.add(ScreenModel(id=SCREEN_ID, theater_id=1, name='Screen 1'))
    session.add(MovieModel(id=MOVIE_ID, title='Inception', duration_minutes=148))
    session.add_all(
        [
            UserModel(id=ADMIN_ID, email='admin@test.com', name='Admin', role='admin'),
            UserModel(
                id=BUYER_ID, email='buyer@test.com', name='Test Buyer', phone='+84900000002'
            ),
            UserModel(id=ANOTHER_BUYER_ID, email='buyer2@test.com', name='Another Buyer'),
        ]
    )
    await session.flush()
    session.add_all(
        [
            SeatModel(id=seat_id, screen_id=SCREEN_ID, row=row, number=number, tier=tier)
            for seat_id, row, number, tier in SEAT_LAYOUT
        ]
    )
    session.add(
        ShowtimeModel(
            id=SHOWTIME_ID,
            movie_id=MOVIE_ID,
            screen_id=SCREEN_ID,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=178),
            prices=dict(PRICES),
        )
    )
    await session.flush()
    session.add_all(
        [
            SeatReservationModel(showtime_id=SHOWTIME_ID, seat_id=seat_id)
            for seat_id in ALL_SEAT_IDS
        ]
    )
    await session.commit()


@pytest.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        'sqlite+aiosqlite://',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False},
    )
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def seeded_session_maker(
    db_session_maker: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    async with db_session_maker() as session:
        await seed_catalog(session)
    return db_session_maker


@pytest.fixture
async def file_session_maker(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Seeded database file; each session gets its own connection"""
    engine = create_async_engine(f'sqlite+aiosqlite:///{tmp_path / "ledger.db"}')
    await create_db_and_tables(engine)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        await seed_catalog(session)
    yield session_maker
    await engine.dispose()


# =============================================================================
# API fixtures
# =============================================================================
@asynccontextmanager
async def _test_lifespan(app: FastAPI) -> AsyncIterator[None]:
    container.wire(modules=WIRE_MODULES)
    await create_db_and_tables()
    yield
    container.unwire()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    TestClient with a fresh in-memory database

    The engine is bound to the client's event loop; seed it through
    `client.portal.call(...)`.
    """
    app = create_app(lifespan=_test_lifespan, title_suffix=' (Test)')
    with TestClient(app) as test_client:

        async def _seed() -> None:
            async with get_session_maker()() as session:
                await seed_catalog(session)

        test_client.portal.call(_seed)  # type: ignore[union-attr]
        yield test_client


@pytest.fixture
def auth_headers() -> Callable[..., Dict[str, str]]:
    jwt_auth = JwtAuth()

    def _headers(user_id: int = BUYER_ID, role: UserRole = UserRole.CUSTOMER) -> Dict[str, str]:
        token = jwt_auth.create_jwt_token(CurrentUser(id=user_id, role=role))
        return {'Authorization': f'Bearer {token}'}

    return _headers


@pytest.fixture
def run_in_client_loop(client: TestClient) -> Callable[[Callable[[], Awaitable[Any]]], Any]:
    def _run(fn: Callable[[], Awaitable[Any]]) -> Any:
        return client.portal.call(fn)  # type: ignore[union-attr]

    return _run


@pytest.fixture
def held_rows(uow: InMemoryUnitOfWork) -> Callable[[UUID], List[SeatReservation]]:
    def _rows(booking_id: UUID) -> List[SeatReservation]:
        return sorted(
            (
                row
                for row in uow.seat_reservation_repo.rows.values()
                if row.booking_id == booking_id
            ),
            key=lambda row: row.seat_id,
        )

    return _rows


@pytest.fixture
def statuses(uow: InMemoryUnitOfWork) -> Callable[[], Dict[int, ReservationStatus]]:
    def _statuses() -> Dict[int, ReservationStatus]:
        return {
            seat_id: row.status
            for (showtime_id, seat_id), row in uow.seat_reservation_repo.rows.items()
            if showtime_id == SHOWTIME_ID
        }

    return _statuses

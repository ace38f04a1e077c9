from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.platform.database.orm_db_setting import Base


class MovieModel(Base):
    __tablename__ = 'movie'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class TheaterModel(Base):
    __tablename__ = 'theater'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ScreenModel(Base):
    __tablename__ = 'screen'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    theater_id: Mapped[int] = mapped_column(Integer, ForeignKey('theater.id'), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    theater: Mapped['TheaterModel'] = relationship('TheaterModel', lazy='selectin')


class SeatModel(Base):
    __tablename__ = 'seat'
    __table_args__ = (UniqueConstraint('screen_id', 'row', 'number', name='uq_seat_position'),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    screen_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('screen.id'), nullable=False, index=True
    )
    row: Mapped[str] = mapped_column(String(5), nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    tier: Mapped[str] = mapped_column(String(20), default='standard', nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ShowtimeModel(Base):
    __tablename__ = 'showtime'
    __table_args__ = (Index('ix_showtime_screen_start', 'screen_id', 'start_time'),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    movie_id: Mapped[int] = mapped_column(Integer, ForeignKey('movie.id'), nullable=False)
    screen_id: Mapped[int] = mapped_column(Integer, ForeignKey('screen.id'), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # {tier: price in the smallest currency unit}
    prices: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    movie: Mapped['MovieModel'] = relationship('MovieModel', lazy='selectin')
    screen: Mapped['ScreenModel'] = relationship('ScreenModel', lazy='selectin')

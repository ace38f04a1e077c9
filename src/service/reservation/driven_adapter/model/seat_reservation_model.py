from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class SeatReservationModel(Base):
    __tablename__ = 'seat_reservation'
    __table_args__ = (Index('ix_seat_reservation_status_expires', 'status', 'expires_at'),)

    showtime_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('showtime.id'), primary_key=True
    )
    seat_id: Mapped[int] = mapped_column(Integer, ForeignKey('seat.id'), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), default='available', nullable=False)
    booking_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self):
        return (
            f'<SeatReservationModel(showtime_id={self.showtime_id}, seat_id={self.seat_id}, '
            f'status={self.status}, version={self.version})>'
        )

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base


class BookingModel(Base):
    __tablename__ = 'booking'

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)  # UUID7
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    showtime_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    seat_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default='pending', nullable=False)
    booking_status: Mapped[str] = mapped_column(String(20), default='reserved', nullable=False)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

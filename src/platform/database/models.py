"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.user_model import UserModel
from src.service.catalog.driven_adapter.model.catalog_model import (
    MovieModel,
    ScreenModel,
    SeatModel,
    ShowtimeModel,
    TheaterModel,
)
from src.service.reservation.driven_adapter.model.seat_reservation_model import (
    SeatReservationModel,
)

__all__ = [
    'BookingModel',
    'MovieModel',
    'ScreenModel',
    'SeatModel',
    'SeatReservationModel',
    'ShowtimeModel',
    'TheaterModel',
    'UserModel',
]

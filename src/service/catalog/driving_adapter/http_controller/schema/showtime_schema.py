from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator


class ShowtimeCreateRequest(BaseModel):
    movie_id: int
    screen_id: int
    start_time: datetime
    # {tier: price in the smallest currency unit}
    prices: Dict[str, int]

    @field_validator('start_time')
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError('start_time must include a timezone offset')
        return v

    class Config:
        json_schema_extra = {
            'example': {
                'movie_id': 1,
                'screen_id': 1,
                'start_time': '2025-01-10T19:30:00+07:00',
                'prices': {'standard': 100, 'premium': 150, 'vip': 250},
            }
        }


class ShowtimeResponse(BaseModel):
    id: int
    movie_id: int
    screen_id: int
    start_time: datetime
    end_time: datetime
    prices: Dict[str, int]
    is_active: bool
    movie_title: str = ''
    theater_name: str = ''


class SeatStatusResponse(BaseModel):
    seat_id: int
    label: str
    number: int
    tier: str
    price: Optional[int] = None
    status: str


class SeatRowResponse(BaseModel):
    row: str
    seats: List[SeatStatusResponse]


class SeatMapResponse(BaseModel):
    showtime: ShowtimeResponse
    available_count: int
    rows: List[SeatRowResponse]


class ShowtimeDeleteResponse(BaseModel):
    showtime_id: int
    deleted: bool
    message: str

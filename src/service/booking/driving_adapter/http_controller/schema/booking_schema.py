from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BookingCreateRequest(BaseModel):
    showtime_id: int
    seat_ids: List[int] = Field(min_length=1)
    payment_method: str = 'credit_card'

    class Config:
        json_schema_extra = {
            'examples': [
                {'showtime_id': 1, 'seat_ids': [11, 12, 13], 'payment_method': 'credit_card'},
                {'showtime_id': 1, 'seat_ids': [42], 'payment_method': 'paypal'},
            ]
        }


class BookingResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'user_id': 2,
                'showtime_id': 1,
                'seat_ids': [11, 12, 13],
                'total_amount': 450,
                'payment_method': 'credit_card',
                'payment_status': 'pending',
                'booking_status': 'reserved',
                'transaction_id': None,
                'created_at': '2025-01-10T10:30:00Z',
            }
        },
    }

    id: UUID
    user_id: int
    showtime_id: int
    seat_ids: List[int]
    total_amount: int
    payment_method: str
    payment_status: str
    booking_status: str
    transaction_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookedSeatResponse(BaseModel):
    id: int
    label: str
    tier: str


class BookingDetailResponse(BookingResponse):
    movie_title: Optional[str] = None
    theater_name: Optional[str] = None
    start_time: Optional[datetime] = None
    seats: List[BookedSeatResponse] = []


class PaymentRequest(BaseModel):
    # Method specific fields: card_number / expiry / cvv for credit_card, paypal_email for paypal
    payment_details: Dict[str, Any] = {}

    class Config:
        json_schema_extra = {
            'example': {'payment_details': {'card_number': '4111111111111111', 'cvv': '123'}}
        }

"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


class BookingResponse(BaseModel):
    id: int
    hotel_name: str
    check_in: date
    check_out: date
    user_id: str
    payment_id: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
    status: str


class VerifyBookingRequest(BaseModel):
    session_id: Optional[str] = Field(None, alias="sessionId")

    model_config = {"populate_by_name": True}


class VerifyBookingResponse(BaseModel):
    success: bool = True
    created: bool
    booking: BookingResponse

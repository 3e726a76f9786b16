"""
Pydantic schemas for checkout sessions and the booking metadata they carry.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field


class CheckoutSessionCreate(BaseModel):
    # Presence is checked by the gateway so a missing field is a 400, not a 422
    hotel_id: Optional[str] = Field(None, alias="hotelId")
    hotel_name: Optional[str] = Field(None, alias="hotelName")
    check_in: Optional[str] = Field(None, alias="checkIn")
    check_out: Optional[str] = Field(None, alias="checkOut")
    user_id: Optional[str] = Field(None, alias="userId")

    model_config = {"populate_by_name": True}


class CheckoutUrlResponse(BaseModel):
    url: str


class BookingMetadata(BaseModel):
    """Booking intent echoed back by the payment provider."""

    hotel_name: str = Field(..., alias="hotelName", min_length=1)
    check_in: date = Field(..., alias="checkIn")
    check_out: date = Field(..., alias="checkOut")
    user_id: str = Field(..., alias="userId", min_length=1)

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}

    def to_metadata(self) -> dict[str, str]:
        return {
            "hotelName": self.hotel_name,
            "checkIn": self.check_in.isoformat(),
            "checkOut": self.check_out.isoformat(),
            "userId": self.user_id,
        }


class CheckoutSession(BaseModel):
    """Provider checkout session, reduced to the fields we rely on."""

    id: str
    url: Optional[str] = None
    status: Optional[str] = None
    payment_status: str
    payment_intent_id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    amount_total: Optional[int] = None
    currency: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

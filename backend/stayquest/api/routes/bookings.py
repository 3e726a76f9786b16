"""
Booking endpoints: reconciliation triggers plus the user's booking list.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stayquest.db.session import get_db
from stayquest.core.exceptions import InvalidRequest, Unauthorized
from stayquest.core.security import AuthSession, get_current_session
from stayquest.core.logging import get_logger
from stayquest.infrastructure.payment_gateway import PaymentSessionGateway, get_payment_gateway
from stayquest.schemas.booking import (
    BookingCancelResponse,
    BookingResponse,
    VerifyBookingRequest,
    VerifyBookingResponse,
)
from stayquest.services.booking_service import cancel_booking, get_user_bookings, reconcile_checkout

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/verify", response_model=VerifyBookingResponse)
async def verify_booking(
    payload: VerifyBookingRequest,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentSessionGateway = Depends(get_payment_gateway),
):
    """
    Server-side verification of a completed checkout.

    Idempotent: verifying the same session again (or racing the
    confirmation view for it) returns the same booking with created=false.
    """
    if not payload.session_id:
        raise InvalidRequest("Missing sessionId")
    result = await reconcile_checkout(db, gateway, payload.session_id)
    return VerifyBookingResponse(
        created=result.created,
        booking=BookingResponse.model_validate(result.booking),
    )


@router.get("/confirmation", response_model=VerifyBookingResponse)
async def booking_confirmation(
    session_id: Optional[str] = Query(None),
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentSessionGateway = Depends(get_payment_gateway),
):
    """Backs the page the payment provider redirects to after checkout."""
    if not session_id:
        raise InvalidRequest("Missing session_id")
    result = await reconcile_checkout(db, gateway, session_id)
    if result.booking.user_id != session.user_id:
        # Payment is captured; the booking outlives the rejected request
        await db.commit()
        logger.warning(
            "confirmation_user_mismatch",
            booking_id=result.booking.id,
            user_id=session.user_id,
        )
        raise Unauthorized("Booking belongs to another user")
    return VerifyBookingResponse(
        created=result.created,
        booking=BookingResponse.model_validate(result.booking),
    )


@router.get("/", response_model=list[BookingResponse])
async def list_user_bookings(
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for the authenticated user."""
    return await get_user_bookings(db, session.user_id)


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking. The row is kept with status cancelled."""
    booking = await cancel_booking(db, booking_id, session.user_id)
    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking_id=booking.id,
        status=booking.status,
    )


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking_alias(
    booking_id: int,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    return await cancel_booking_endpoint(booking_id, session, db)

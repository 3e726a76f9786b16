"""
Checkout endpoints: start a hosted payment and inspect its state.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from stayquest.core.exceptions import InvalidRequest, Unauthorized
from stayquest.core.security import AuthSession, get_optional_session
from stayquest.infrastructure.payment_gateway import PaymentSessionGateway, get_payment_gateway
from stayquest.schemas.checkout import CheckoutSession, CheckoutSessionCreate, CheckoutUrlResponse

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.post("/session", response_model=CheckoutUrlResponse)
async def create_checkout_session(
    payload: CheckoutSessionCreate,
    request: Request,
    session: Optional[AuthSession] = Depends(get_optional_session),
    gateway: PaymentSessionGateway = Depends(get_payment_gateway),
):
    """
    Create a hosted checkout session and return the URL to redirect to.

    When the caller is signed in, the booking must be for themselves.
    """
    if session is not None and payload.user_id and payload.user_id != session.user_id:
        raise Unauthorized("Cannot book on behalf of another user")

    checkout = await gateway.create_session(
        hotel_id=payload.hotel_id,
        hotel_name=payload.hotel_name,
        check_in=payload.check_in,
        check_out=payload.check_out,
        user_id=payload.user_id,
        origin=request.headers.get("origin"),
    )
    return CheckoutUrlResponse(url=checkout.url)


@router.get("/session", response_model=CheckoutSession)
async def get_checkout_session(
    session_id: Optional[str] = Query(None),
    gateway: PaymentSessionGateway = Depends(get_payment_gateway),
):
    if not session_id:
        raise InvalidRequest("Missing session_id")
    return await gateway.retrieve_session(session_id)

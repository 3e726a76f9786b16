"""
Payment Session Gateway: hosted Stripe Checkout sessions.

Booking intent (hotel, dates, user) travels as session metadata and is echoed
back verbatim on retrieval; nothing is stored locally when a session is
created. The Stripe SDK is blocking, so calls run in the threadpool.
"""

from datetime import date
from typing import Any, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from stayquest.core.config import get_settings
from stayquest.core.exceptions import InvalidRequest, NotFound, SessionRetrievalError, UpstreamError
from stayquest.core.logging import get_logger
from stayquest.core.metrics import record_checkout
from stayquest.schemas.checkout import BookingMetadata, CheckoutSession

logger = get_logger(__name__)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def to_checkout_session(obj: Any) -> CheckoutSession:
    """Map a Stripe session (object or webhook dict) to CheckoutSession."""
    payment_intent = _field(obj, "payment_intent")
    if payment_intent is not None and not isinstance(payment_intent, str):
        payment_intent = _field(payment_intent, "id")
    metadata = _field(obj, "metadata") or {}
    return CheckoutSession(
        id=_field(obj, "id"),
        url=_field(obj, "url"),
        status=_field(obj, "status"),
        payment_status=_field(obj, "payment_status") or "unpaid",
        payment_intent_id=payment_intent,
        metadata={key: metadata[key] for key in metadata.keys()},
        amount_total=_field(obj, "amount_total"),
        currency=_field(obj, "currency"),
    )


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidRequest(f"Invalid date: {value}")


class PaymentSessionGateway:
    """Creates and retrieves hosted checkout sessions."""

    def __init__(
        self,
        api_key: str,
        unit_amount: int,
        currency: str,
        public_base_url: str,
    ):
        self.api_key = api_key
        self.unit_amount = unit_amount
        self.currency = currency
        self.public_base_url = public_base_url.rstrip("/")

    async def create_session(
        self,
        hotel_id: Optional[str],
        hotel_name: Optional[str],
        check_in: Optional[str],
        check_out: Optional[str],
        user_id: Optional[str],
        origin: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Create a checkout session for one stay at a flat price.

        Raises InvalidRequest when booking information is missing or the
        dates are not an ISO check-in strictly before check-out.
        """
        if not (hotel_name and check_in and check_out and user_id):
            raise InvalidRequest("Missing booking information")

        metadata = BookingMetadata(
            hotel_name=hotel_name,
            check_in=_parse_date(check_in),
            check_out=_parse_date(check_out),
            user_id=user_id,
        )
        if metadata.check_in >= metadata.check_out:
            raise InvalidRequest("Check-out date must be after check-in date")

        base_url = (origin or self.public_base_url).rstrip("/")
        params = {
            "api_key": self.api_key,
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": f"{metadata.hotel_name} Booking"},
                        "unit_amount": self.unit_amount,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": f"{base_url}/booking-success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{base_url}/hotel/{hotel_id or ''}",
            "metadata": metadata.to_metadata(),
        }

        try:
            session = await run_in_threadpool(stripe.checkout.Session.create, **params)
        except stripe.StripeError as e:
            record_checkout("create", success=False)
            logger.error("checkout_session_create_failed", hotel_id=hotel_id, user_id=user_id, error=str(e))
            raise UpstreamError("Failed to create checkout session")

        checkout = to_checkout_session(session)
        record_checkout("create", success=True)
        logger.info(
            "checkout_session_created",
            session_id=checkout.id,
            hotel_id=hotel_id,
            user_id=user_id,
        )
        return checkout

    async def retrieve_session(self, session_id: str) -> CheckoutSession:
        """Fetch session status and metadata. Raises NotFound for unknown ids."""
        try:
            session = await run_in_threadpool(
                stripe.checkout.Session.retrieve, session_id, api_key=self.api_key
            )
        except stripe.InvalidRequestError as e:
            record_checkout("retrieve", success=False)
            if e.code == "resource_missing":
                logger.warning("checkout_session_not_found", session_id=session_id)
                raise NotFound(f"Checkout session {session_id} not found")
            logger.error("checkout_session_retrieve_failed", session_id=session_id, error=str(e))
            raise SessionRetrievalError()
        except stripe.StripeError as e:
            record_checkout("retrieve", success=False)
            logger.error("checkout_session_retrieve_failed", session_id=session_id, error=str(e))
            raise SessionRetrievalError()

        record_checkout("retrieve", success=True)
        return to_checkout_session(session)


_gateway: Optional[PaymentSessionGateway] = None


def get_payment_gateway() -> PaymentSessionGateway:
    """Dependency returning the process-wide gateway."""
    global _gateway
    if _gateway is None:
        settings = get_settings()
        _gateway = PaymentSessionGateway(
            api_key=settings.STRIPE_SECRET_KEY,
            unit_amount=settings.CHECKOUT_UNIT_AMOUNT,
            currency=settings.CHECKOUT_CURRENCY,
            public_base_url=settings.PUBLIC_BASE_URL,
        )
    return _gateway

"""
Payment provider webhook: the server-triggered reconciliation path.

The provider retries deliveries that do not get a 2xx. Domain rejections
(unpaid session, bad metadata) are acknowledged so they are not redelivered;
infrastructure failures return 500 so the provider tries again later.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from stayquest.db.session import get_db
from stayquest.core.config import get_settings
from stayquest.core.exceptions import InvalidRequest, StayQuestError
from stayquest.core.logging import get_logger
from stayquest.infrastructure.payment_gateway import PaymentSessionGateway, get_payment_gateway
from stayquest.services.booking_service import reconcile_checkout

logger = get_logger(__name__)
router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

RECONCILE_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentSessionGateway = Depends(get_payment_gateway),
):
    settings = get_settings()
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.warning("stripe_webhook_not_configured")
        return {"received": False, "error": "Webhook not configured"}

    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    try:
        event = stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except ValueError:
        raise InvalidRequest("Invalid payload")
    except stripe.SignatureVerificationError:
        logger.warning("stripe_webhook_bad_signature")
        raise InvalidRequest("Invalid signature")

    event_type = event["type"]
    if event_type not in RECONCILE_EVENTS:
        logger.debug("stripe_webhook_ignored", event_id=event["id"], event_type=event_type)
        return {"received": True}

    session_id = event["data"]["object"]["id"]
    try:
        result = await reconcile_checkout(db, gateway, session_id)
    except StayQuestError as e:
        logger.warning(
            "stripe_webhook_reconcile_failed",
            event_id=event["id"],
            session_id=session_id,
            error=e.detail,
        )
        if e.status_code >= 500:
            return JSONResponse(
                status_code=e.status_code,
                content={"received": True, "reconciled": False, "error": e.detail},
            )
        return {"received": True, "reconciled": False, "error": e.detail}

    logger.info(
        "stripe_webhook_reconciled",
        event_id=event["id"],
        session_id=session_id,
        booking_id=result.booking.id,
        created=result.created,
    )
    return {"received": True, "reconciled": True, "booking_id": result.booking.id}

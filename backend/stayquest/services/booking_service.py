"""
Booking service: checkout reconciliation plus the user-scoped booking store.

RECONCILIATION STRATEGY: Check, Insert, Let the Constraint Decide
=================================================================

Problem:
  A paid checkout session must become exactly one booking. Reconcile runs
  from several independent triggers (the confirmation view, the verify
  endpoint, the provider webhook) that can race for the same session.
  Both read "no booking yet", both insert, result: a duplicate.

Solution:
  1. Retrieve the session and validate it (paid, complete metadata)
  2. SELECT by payment_id; if found, return it (re-confirmation is a no-op)
  3. INSERT; bookings.payment_id carries a UNIQUE constraint
  4. If the INSERT raises IntegrityError, another reconcile won the race:
     roll back and return the winner's row

  The SELECT in step 2 is only a fast path. The unique constraint is the
  authority, so every interleaving ends with one row and both callers
  receive it.
"""

from dataclasses import dataclass
from typing import Optional
import time

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stayquest.core.exceptions import (
    InvalidRequest,
    MissingMetadata,
    NotFound,
    PaymentIncomplete,
    PersistenceError,
    SessionRetrievalError,
    StayQuestError,
)
from stayquest.core.logging import get_logger
from stayquest.core.metrics import record_reconcile, reconcile_latency
from stayquest.infrastructure.payment_gateway import PaymentSessionGateway
from stayquest.models.booking import Booking, BookingStatus
from stayquest.schemas.checkout import BookingMetadata, CheckoutSession

logger = get_logger(__name__)


@dataclass
class ReconcileResult:
    booking: Booking
    created: bool


def parse_booking_metadata(session: CheckoutSession) -> BookingMetadata:
    """Validate the metadata bag before it reaches persistence."""
    try:
        return BookingMetadata.model_validate(session.metadata or {})
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        logger.warning("reconcile_missing_metadata", session_id=session.id, fields=fields)
        raise MissingMetadata(f"Missing booking metadata: {', '.join(fields)}")


async def get_booking_by_payment_id(db: AsyncSession, payment_id: str) -> Optional[Booking]:
    result = await db.execute(select(Booking).where(Booking.payment_id == payment_id))
    return result.scalar_one_or_none()


async def _lookup_reconciled(db: AsyncSession, payment_id: str, session_id: str) -> Optional[Booking]:
    try:
        return await get_booking_by_payment_id(db, payment_id)
    except SQLAlchemyError as e:
        record_reconcile("error")
        logger.error("reconcile_lookup_failed", session_id=session_id, payment_id=payment_id, error=str(e))
        raise PersistenceError("Failed to read booking")


async def _retrieve_paid_session(gateway: PaymentSessionGateway, session_id: str) -> CheckoutSession:
    try:
        session = await gateway.retrieve_session(session_id)
    except StayQuestError as e:
        record_reconcile("error")
        logger.warning("reconcile_session_unavailable", session_id=session_id, error=e.detail)
        raise SessionRetrievalError(f"Failed to retrieve checkout session: {e.detail}")
    if session is None:
        record_reconcile("error")
        raise SessionRetrievalError()

    if not session.is_paid:
        logger.info(
            "reconcile_payment_incomplete",
            session_id=session_id,
            payment_status=session.payment_status,
        )
        record_reconcile("payment_incomplete")
        raise PaymentIncomplete()
    return session


async def reconcile_checkout(
    db: AsyncSession,
    gateway: PaymentSessionGateway,
    session_id: str,
) -> ReconcileResult:
    """
    Turn a paid checkout session into exactly one booking.

    Safe to call any number of times, concurrently, from any trigger.
    Raises SessionRetrievalError, PaymentIncomplete, MissingMetadata or
    PersistenceError; nothing is retried.
    """
    if not session_id:
        raise InvalidRequest("Missing sessionId")

    start = time.perf_counter()
    try:
        session = await _retrieve_paid_session(gateway, session_id)

        try:
            metadata = parse_booking_metadata(session)
        except MissingMetadata:
            record_reconcile("missing_metadata")
            raise
        if not session.payment_intent_id:
            record_reconcile("missing_metadata")
            raise MissingMetadata("Checkout session has no payment identifier")
        if metadata.check_in >= metadata.check_out:
            # Payment already captured; keep the booking and flag the data
            logger.warning(
                "reconcile_inverted_dates",
                session_id=session_id,
                check_in=str(metadata.check_in),
                check_out=str(metadata.check_out),
            )

        payment_id = session.payment_intent_id
        existing = await _lookup_reconciled(db, payment_id, session_id)

        if existing:
            record_reconcile("existing")
            logger.info("booking_already_reconciled", booking_id=existing.id, payment_id=payment_id)
            return ReconcileResult(booking=existing, created=False)

        booking = Booking(
            hotel_name=metadata.hotel_name,
            check_in=metadata.check_in,
            check_out=metadata.check_out,
            user_id=metadata.user_id,
            payment_id=payment_id,
            status=BookingStatus.CONFIRMED.value,
        )
        db.add(booking)
        try:
            await db.flush()
        except IntegrityError:
            # Lost the race: the unique constraint says it is already reconciled
            await db.rollback()
            winner = await _lookup_reconciled(db, payment_id, session_id)
            if winner is None:
                record_reconcile("error")
                logger.error("reconcile_conflict_unresolved", session_id=session_id, payment_id=payment_id)
                raise PersistenceError()
            record_reconcile("conflict")
            logger.info("booking_reconcile_conflict", booking_id=winner.id, payment_id=payment_id)
            return ReconcileResult(booking=winner, created=False)
        except SQLAlchemyError as e:
            await db.rollback()
            record_reconcile("error")
            logger.error("reconcile_insert_failed", session_id=session_id, error=str(e))
            raise PersistenceError()

        await db.refresh(booking)
        record_reconcile("created")
        logger.info(
            "booking_reconciled",
            booking_id=booking.id,
            user_id=booking.user_id,
            payment_id=payment_id,
            session_id=session_id,
        )
        return ReconcileResult(booking=booking, created=True)
    finally:
        reconcile_latency.observe(time.perf_counter() - start)


async def get_user_bookings(db: AsyncSession, user_id: str) -> list[Booking]:
    """Get all bookings for a user, newest first. Degrades to [] on storage errors."""
    try:
        result = await db.execute(
            select(Booking)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
    except SQLAlchemyError as e:
        logger.warning("bookings_list_failed", user_id=user_id, error=str(e))
        return []
    return list(result.scalars().all())


async def cancel_booking(db: AsyncSession, booking_id: int, user_id: str) -> Booking:
    """Cancel one of the caller's bookings. Other users' bookings are invisible."""
    result = await db.execute(
        select(Booking).where(
            Booking.id == booking_id,
            Booking.user_id == user_id,
        )
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise NotFound("Booking not found")

    if booking.status == BookingStatus.CANCELLED.value:
        raise InvalidRequest("Booking is already cancelled")

    booking.status = BookingStatus.CANCELLED.value
    try:
        await db.flush()
    except SQLAlchemyError as e:
        logger.error("booking_cancel_failed", booking_id=booking_id, error=str(e))
        raise PersistenceError("Failed to cancel booking")
    await db.refresh(booking)

    logger.info("booking_cancelled", booking_id=booking.id, user_id=user_id)
    return booking

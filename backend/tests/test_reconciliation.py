"""
Tests for checkout reconciliation, including the concurrent-trigger race.
"""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from stayquest.core.exceptions import MissingMetadata, PaymentIncomplete, PersistenceError, SessionRetrievalError
from stayquest.db.base import Base
from stayquest.models.booking import Booking
from stayquest.services import booking_service
from stayquest.services.booking_service import reconcile_checkout

from conftest import USER_A, booking_metadata


async def count_bookings(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(Booking))).scalar()


@pytest.mark.asyncio
async def test_reconcile_creates_confirmed_booking(db_session, gateway, fake_stripe):
    session_id = fake_stripe.add_session(booking_metadata())

    result = await reconcile_checkout(db_session, gateway, session_id)

    assert result.created is True
    booking = result.booking
    assert booking.status == "confirmed"
    assert booking.hotel_name == "Grand Inn"
    assert booking.user_id == USER_A
    assert booking.payment_id == f"pi_{session_id}"
    assert str(booking.check_in) == "2025-06-01"
    assert str(booking.check_out) == "2025-06-05"


@pytest.mark.asyncio
async def test_reconcile_twice_returns_same_booking(db_session, gateway, fake_stripe):
    """Second reconcile is a no-op re-confirmation."""
    session_id = fake_stripe.add_session(booking_metadata())

    first = await reconcile_checkout(db_session, gateway, session_id)
    second = await reconcile_checkout(db_session, gateway, session_id)

    assert first.created is True
    assert second.created is False
    assert second.booking.id == first.booking.id
    assert second.booking.status == "confirmed"
    assert await count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_reconcile_unpaid_session_creates_nothing(db_session, gateway, fake_stripe):
    session_id = fake_stripe.add_session(booking_metadata(), payment_status="unpaid")

    with pytest.raises(PaymentIncomplete):
        await reconcile_checkout(db_session, gateway, session_id)

    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["hotelName", "checkIn", "checkOut", "userId"])
async def test_reconcile_incomplete_metadata_creates_nothing(db_session, gateway, fake_stripe, missing):
    metadata = booking_metadata()
    del metadata[missing]
    session_id = fake_stripe.add_session(metadata)

    with pytest.raises(MissingMetadata) as exc_info:
        await reconcile_checkout(db_session, gateway, session_id)

    assert missing in exc_info.value.detail
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_reconcile_blank_metadata_field_is_missing(db_session, gateway, fake_stripe):
    session_id = fake_stripe.add_session({**booking_metadata(), "hotelName": "   "})

    with pytest.raises(MissingMetadata):
        await reconcile_checkout(db_session, gateway, session_id)
    assert await count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_reconcile_unknown_session(db_session, gateway, fake_stripe):
    with pytest.raises(SessionRetrievalError):
        await reconcile_checkout(db_session, gateway, "cs_test_does_not_exist")


@pytest.mark.asyncio
async def test_reconcile_keeps_inverted_dates(db_session, gateway, fake_stripe):
    """A paid session is honoured even if its dates are reversed."""
    metadata = {**booking_metadata(), "checkIn": "2025-06-05", "checkOut": "2025-06-01"}
    session_id = fake_stripe.add_session(metadata)

    result = await reconcile_checkout(db_session, gateway, session_id)

    assert result.created is True
    assert str(result.booking.check_in) == "2025-06-05"


@pytest.mark.asyncio
async def test_reconcile_lost_race_returns_winner(db_session, gateway, fake_stripe, monkeypatch):
    """A stale 'not found' read falls back on the unique constraint."""
    session_id = fake_stripe.add_session(booking_metadata())
    winner = await reconcile_checkout(db_session, gateway, session_id)
    winner_id = winner.booking.id
    await db_session.commit()

    real_lookup = booking_service.get_booking_by_payment_id
    calls = {"n": 0}

    async def stale_lookup(db, payment_id):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return await real_lookup(db, payment_id)

    monkeypatch.setattr(booking_service, "get_booking_by_payment_id", stale_lookup)

    loser = await reconcile_checkout(db_session, gateway, session_id)

    assert loser.created is False
    assert loser.booking.id == winner_id
    assert await count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_concurrent_reconciles_persist_one_booking(tmp_path, gateway, fake_stripe, monkeypatch):
    """
    Two triggers reconcile the same paid session at once, each on its own
    connection, and both pass the existence check before either inserts.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    session_id = fake_stripe.add_session(booking_metadata())

    real_lookup = booking_service.get_booking_by_payment_id
    both_checked = asyncio.Event()
    calls = {"n": 0}

    async def racing_lookup(db, payment_id):
        result = await real_lookup(db, payment_id)
        calls["n"] += 1
        if calls["n"] <= 2:
            if calls["n"] == 2:
                both_checked.set()
            await asyncio.wait_for(both_checked.wait(), timeout=5)
        return result

    monkeypatch.setattr(booking_service, "get_booking_by_payment_id", racing_lookup)

    async def reconcile_in_own_session():
        async with session_factory() as db:
            result = await reconcile_checkout(db, gateway, session_id)
            await db.commit()
            return result.booking.id, result.created

    try:
        outcomes = await asyncio.gather(reconcile_in_own_session(), reconcile_in_own_session())

        booking_ids = {booking_id for booking_id, _ in outcomes}
        assert len(booking_ids) == 1
        assert sorted(created for _, created in outcomes) == [False, True]

        async with session_factory() as db:
            assert await count_bookings(db) == 1
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_checkout_to_booking_scenario(db_session, gateway, fake_stripe):
    """Create session, see it unpaid, reconcile too early, pay, reconcile."""
    checkout = await gateway.create_session(
        hotel_id="h1",
        hotel_name="Grand Inn",
        check_in="2025-06-01",
        check_out="2025-06-05",
        user_id="u1",
    )
    assert checkout.url

    retrieved = await gateway.retrieve_session(checkout.id)
    assert retrieved.payment_status == "unpaid"

    with pytest.raises(PaymentIncomplete):
        await reconcile_checkout(db_session, gateway, checkout.id)
    assert await count_bookings(db_session) == 0

    payment_intent = fake_stripe.mark_paid(checkout.id)
    result = await reconcile_checkout(db_session, gateway, checkout.id)

    assert result.created is True
    assert result.booking.status == "confirmed"
    assert result.booking.payment_id == payment_intent
    assert result.booking.hotel_name == "Grand Inn"
    assert result.booking.user_id == "u1"
    assert await count_bookings(db_session) == 1


@pytest.mark.asyncio
async def test_reconcile_lost_race_lookup_failure(db_session, gateway, fake_stripe, monkeypatch):
    """A storage failure while fetching the race winner is a persistence error."""
    session_id = fake_stripe.add_session(booking_metadata())
    await reconcile_checkout(db_session, gateway, session_id)
    await db_session.commit()

    calls = {"n": 0}

    async def failing_lookup(db, payment_id):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        raise OperationalError("SELECT bookings", {}, Exception("database is locked"))

    monkeypatch.setattr(booking_service, "get_booking_by_payment_id", failing_lookup)

    with pytest.raises(PersistenceError) as exc_info:
        await reconcile_checkout(db_session, gateway, session_id)

    assert exc_info.value.detail == "Failed to read booking"
    assert calls["n"] == 2

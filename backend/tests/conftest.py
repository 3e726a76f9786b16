"""
Pytest fixtures: in-memory database, fake providers, client, and authentication.

Tests run against SQLite (aiosqlite). Stripe calls are replaced by an
in-memory FakeStripe; the places and identity providers are served by
httpx.MockTransport handlers.
"""

import itertools
import os
from typing import AsyncGenerator

# Settings are read once; configure them before the app is imported
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("IDENTITY_JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")

import httpx
import pytest
import pytest_asyncio
import stripe
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from stayquest.main import app
from stayquest.api.deps import get_session_events
from stayquest.db.base import Base
from stayquest.db import session as db_session_module
from stayquest.db.session import get_db
from stayquest.core.security import create_access_token
from stayquest.infrastructure.identity_client import IdentityClient, get_identity_client
from stayquest.infrastructure.payment_gateway import PaymentSessionGateway, get_payment_gateway
from stayquest.infrastructure.places_client import PlacesClient, get_places_client
from stayquest.services.session_events import SessionEvents

USER_A = "11111111-aaaa-4aaa-8aaa-111111111111"
USER_B = "22222222-bbbb-4bbb-8bbb-222222222222"


class FakeStripe:
    """In-memory stand-in for stripe.checkout.Session create/retrieve."""

    def __init__(self):
        self.sessions: dict[str, dict] = {}
        self.created_params: list[dict] = []
        self._ids = itertools.count(1)

    def create(self, **params):
        self.created_params.append(params)
        session_id = f"cs_test_{next(self._ids)}"
        self.sessions[session_id] = {
            "id": session_id,
            "url": f"https://checkout.stripe.test/pay/{session_id}",
            "status": "open",
            "payment_status": "unpaid",
            "payment_intent": None,
            "metadata": dict(params.get("metadata") or {}),
            "amount_total": params["line_items"][0]["price_data"]["unit_amount"],
            "currency": params["line_items"][0]["price_data"]["currency"],
        }
        return dict(self.sessions[session_id])

    def retrieve(self, session_id, **params):
        if session_id not in self.sessions:
            raise stripe.InvalidRequestError(
                f"No such checkout.session: '{session_id}'",
                "id",
                code="resource_missing",
            )
        return dict(self.sessions[session_id])

    def add_session(self, metadata: dict, payment_status: str = "paid", payment_intent: str = None) -> str:
        """Register a session directly, as if a customer went through checkout."""
        session_id = f"cs_test_{next(self._ids)}"
        self.sessions[session_id] = {
            "id": session_id,
            "url": None,
            "status": "complete" if payment_status == "paid" else "open",
            "payment_status": payment_status,
            "payment_intent": payment_intent or (f"pi_{session_id}" if payment_status == "paid" else None),
            "metadata": dict(metadata),
            "amount_total": 10000,
            "currency": "usd",
        }
        return session_id

    def mark_paid(self, session_id: str) -> str:
        session = self.sessions[session_id]
        session["status"] = "complete"
        session["payment_status"] = "paid"
        session["payment_intent"] = f"pi_{session_id}"
        return session["payment_intent"]


def booking_metadata(user_id: str = USER_A, hotel_name: str = "Grand Inn") -> dict:
    return {
        "hotelName": hotel_name,
        "checkIn": "2025-06-01",
        "checkOut": "2025-06-05",
        "userId": user_id,
    }


PLACES_NEARBY = {
    "status": "OK",
    "results": [
        {
            "place_id": "place-1",
            "name": "Grand Inn",
            "vicinity": "1 Main St",
            "rating": 4.5,
            "photos": [{"photo_reference": "photo-1"}],
        },
        {"place_id": "place-2", "name": "Budget Lodge", "vicinity": "9 Side Rd"},
    ],
}

PLACES_DETAILS = {
    "status": "OK",
    "result": {
        "name": "Grand Inn",
        "rating": 4.5,
        "formatted_address": "1 Main St, Springfield",
        "photos": [{"photo_reference": "photo-1"}, {"photo_reference": "photo-2"}],
        "types": ["lodging", "point_of_interest"],
    },
}


def places_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/nearbysearch/json"):
        if request.url.params.get("location") == "0.0,0.0":
            return httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"})
        return httpx.Response(200, json=PLACES_NEARBY)
    if request.url.path.endswith("/details/json"):
        if request.url.params.get("place_id") == "missing":
            return httpx.Response(200, json={"status": "NOT_FOUND"})
        return httpx.Response(200, json=PLACES_DETAILS)
    return httpx.Response(404)


def identity_handler(request: httpx.Request) -> httpx.Response:
    user = {"id": USER_A, "email": "test@example.com"}
    path = request.url.path
    if path == "/auth/v1/signup":
        return httpx.Response(200, json={**user, "email": "new@example.com"})
    if path == "/auth/v1/token":
        if b"correct-password" in request.content:
            return httpx.Response(200, json={
                "access_token": "provider-access-token",
                "refresh_token": "provider-refresh-token",
                "user": user,
            })
        return httpx.Response(400, json={"error_description": "Invalid login credentials"})
    if path == "/auth/v1/logout":
        return httpx.Response(204)
    if path == "/auth/v1/user":
        return httpx.Response(200, json=user)
    return httpx.Response(404)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_stripe(monkeypatch) -> FakeStripe:
    fake = FakeStripe()
    monkeypatch.setattr(stripe.checkout.Session, "create", fake.create)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", fake.retrieve)
    return fake


@pytest.fixture
def gateway(fake_stripe) -> PaymentSessionGateway:
    return PaymentSessionGateway(
        api_key="sk_test_123",
        unit_amount=10000,
        currency="usd",
        public_base_url="http://frontend.test",
    )


@pytest_asyncio.fixture
async def places_client() -> AsyncGenerator[PlacesClient, None]:
    client = httpx.AsyncClient(
        base_url="https://places.test/maps/api/place",
        transport=httpx.MockTransport(places_handler),
    )
    places = PlacesClient(api_key="places-key", client=client)
    yield places
    await places.close()


@pytest_asyncio.fixture
async def identity_client() -> AsyncGenerator[IdentityClient, None]:
    client = httpx.AsyncClient(
        base_url="https://identity.test",
        transport=httpx.MockTransport(identity_handler),
    )
    identity = IdentityClient(api_key="anon-key", client=client)
    yield identity
    await identity.close()


@pytest.fixture
def session_events() -> SessionEvents:
    events = SessionEvents()
    yield events
    events.close()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    gateway: PaymentSessionGateway,
    places_client: PlacesClient,
    identity_client: IdentityClient,
    session_events: SessionEvents,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB session and every provider overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_places_client] = lambda: places_client
    app.dependency_overrides[get_identity_client] = lambda: identity_client
    app.dependency_overrides[get_session_events] = lambda: session_events

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Session factory over a file database, one connection per session."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'app.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def committing_client(
    monkeypatch,
    file_session_factory: async_sessionmaker,
    gateway: PaymentSessionGateway,
) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client that keeps the real get_db, so each request commits or
    rolls back its own session exactly as in production.
    """
    monkeypatch.setattr(db_session_module, "AsyncSessionLocal", file_session_factory)
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """Authorization headers for USER_A."""
    token = create_access_token(data={"sub": USER_A, "email": "test@example.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers() -> dict:
    """Authorization headers for USER_B."""
    token = create_access_token(data={"sub": USER_B, "email": "other@example.com"})
    return {"Authorization": f"Bearer {token}"}

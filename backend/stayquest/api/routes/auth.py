"""
Authentication endpoints, delegated to the identity provider.
"""

from fastapi import APIRouter, Depends, status

from stayquest.api.deps import get_session_events
from stayquest.core.security import AuthSession, get_current_session
from stayquest.infrastructure.identity_client import IdentityClient, get_identity_client
from stayquest.schemas.auth import AuthResponse, Credentials, SessionResponse
from stayquest.services import auth_service
from stayquest.services.session_events import SessionEvents

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    credentials: Credentials,
    identity: IdentityClient = Depends(get_identity_client),
    events: SessionEvents = Depends(get_session_events),
):
    """Create an account with the identity provider."""
    user = await auth_service.sign_up(identity, events, credentials)
    return AuthResponse(
        user_id=user.user_id,
        email=user.email,
        access_token=user.access_token,
        refresh_token=user.refresh_token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: Credentials,
    identity: IdentityClient = Depends(get_identity_client),
    events: SessionEvents = Depends(get_session_events),
):
    """Exchange email and password for an access token."""
    user = await auth_service.sign_in(identity, events, credentials)
    return AuthResponse(
        user_id=user.user_id,
        email=user.email,
        access_token=user.access_token,
        refresh_token=user.refresh_token,
    )


@router.post("/logout")
async def logout(
    session: AuthSession = Depends(get_current_session),
    identity: IdentityClient = Depends(get_identity_client),
    events: SessionEvents = Depends(get_session_events),
):
    await auth_service.sign_out(identity, events, session)
    return {"success": True}


@router.get("/session", response_model=SessionResponse)
async def current_session(
    session: AuthSession = Depends(get_current_session),
    identity: IdentityClient = Depends(get_identity_client),
):
    """The caller's identity as the provider currently sees it."""
    user = await identity.get_user(session.access_token)
    return SessionResponse(user_id=user.user_id, email=user.email)

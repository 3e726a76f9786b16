"""
Authentication service: delegates to the identity provider and announces
session changes.
"""

from stayquest.core.logging import get_logger
from stayquest.core.security import AuthSession
from stayquest.infrastructure.identity_client import IdentityClient, IdentityUser
from stayquest.schemas.auth import Credentials
from stayquest.services.session_events import SessionEvent, SessionEvents, SessionEventType

logger = get_logger(__name__)


async def sign_up(identity: IdentityClient, events: SessionEvents, credentials: Credentials) -> IdentityUser:
    user = await identity.sign_up(credentials.email, credentials.password)
    logger.info("user_registered", user_id=user.user_id)
    await events.publish(SessionEvent(SessionEventType.SIGNED_UP, user.user_id, user.email))
    return user


async def sign_in(identity: IdentityClient, events: SessionEvents, credentials: Credentials) -> IdentityUser:
    user = await identity.sign_in(credentials.email, credentials.password)
    logger.info("user_logged_in", user_id=user.user_id)
    await events.publish(SessionEvent(SessionEventType.SIGNED_IN, user.user_id, user.email))
    return user


async def sign_out(identity: IdentityClient, events: SessionEvents, session: AuthSession) -> None:
    await identity.sign_out(session.access_token)
    logger.info("user_logged_out", user_id=session.user_id)
    await events.publish(SessionEvent(SessionEventType.SIGNED_OUT, session.user_id, session.email))

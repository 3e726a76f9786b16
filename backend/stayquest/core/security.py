"""
Request authentication against identity-provider access tokens.

The identity provider signs HS256 JWTs; we verify them locally with the
shared secret instead of calling the provider on every request. The caller's
identity is handed to handlers as an explicit AuthSession dependency.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stayquest.core.config import get_settings
from stayquest.core.exceptions import Unauthorized
from stayquest.core.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    access_token: str
    email: Optional[str] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token in the identity provider's format (tests, local dev)."""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire, "aud": settings.IDENTITY_JWT_AUDIENCE})
    return jwt.encode(to_encode, settings.IDENTITY_JWT_SECRET, algorithm=settings.IDENTITY_JWT_ALGORITHM)


def decode_access_token(token: str) -> AuthSession:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.IDENTITY_JWT_SECRET,
            algorithms=[settings.IDENTITY_JWT_ALGORITHM],
            audience=settings.IDENTITY_JWT_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("token_rejected", error=str(e))
        raise Unauthorized("Invalid authentication token")

    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid authentication token")
    return AuthSession(user_id=str(user_id), access_token=token, email=payload.get("email"))


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthSession]:
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


async def get_current_session(
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> AuthSession:
    if session is None:
        raise Unauthorized("Not authenticated")
    return session

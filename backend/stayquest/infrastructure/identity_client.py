"""
Identity Provider Adapter: thin client for a GoTrue-compatible auth API.

Credentials never touch our database; the provider owns accounts and issues
the access tokens that stayquest.core.security verifies.
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from stayquest.core.config import get_settings
from stayquest.core.exceptions import InvalidRequest, Unauthorized, UpstreamError
from stayquest.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class IdentityUser:
    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    return (
        body.get("error_description")
        or body.get("msg")
        or body.get("message")
        or body.get("error")
        or response.reason_phrase
    )


class IdentityClient:
    def __init__(self, api_key: str, client: httpx.AsyncClient):
        self.api_key = api_key
        self.client = client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {"apikey": self.api_key, **kwargs.pop("headers", {})}
        try:
            response = await self.client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("identity_request_failed", path=path, error=str(e))
            raise UpstreamError("Identity service unavailable")
        if response.status_code >= 500:
            logger.error("identity_request_failed", path=path, status_code=response.status_code)
            raise UpstreamError("Identity service unavailable")
        return response

    @staticmethod
    def _to_user(body: dict[str, Any]) -> IdentityUser:
        user = body.get("user") or body
        return IdentityUser(
            user_id=str(user["id"]),
            email=user.get("email"),
            access_token=body.get("access_token"),
            refresh_token=body.get("refresh_token"),
        )

    async def sign_up(self, email: str, password: str) -> IdentityUser:
        response = await self._request("POST", "/auth/v1/signup", json={"email": email, "password": password})
        if response.status_code >= 400:
            raise InvalidRequest(_error_message(response))
        return self._to_user(response.json())

    async def sign_in(self, email: str, password: str) -> IdentityUser:
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            logger.warning("login_failed", email=email)
            raise Unauthorized("Invalid email or password")
        return self._to_user(response.json())

    async def sign_out(self, access_token: str) -> None:
        response = await self._request(
            "POST",
            "/auth/v1/logout",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code >= 400:
            raise Unauthorized(_error_message(response))

    async def get_user(self, access_token: str) -> IdentityUser:
        response = await self._request(
            "GET",
            "/auth/v1/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code >= 400:
            raise Unauthorized(_error_message(response))
        return self._to_user(response.json())

    async def close(self) -> None:
        await self.client.aclose()


_identity_client: Optional[IdentityClient] = None


def get_identity_client() -> IdentityClient:
    global _identity_client
    if _identity_client is None:
        settings = get_settings()
        _identity_client = IdentityClient(
            api_key=settings.IDENTITY_API_KEY,
            client=httpx.AsyncClient(base_url=settings.IDENTITY_URL, timeout=settings.IDENTITY_TIMEOUT),
        )
    return _identity_client


async def close_identity_client() -> None:
    global _identity_client
    if _identity_client:
        await _identity_client.close()
        _identity_client = None

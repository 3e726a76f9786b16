"""
Error taxonomy for the API.

Every error is an HTTPException with a fixed status code so services can
raise them directly and FastAPI turns them into `{"error": ...}` responses
(see stayquest.api.errors).
"""

from typing import Optional

from fastapi import HTTPException, status


class StayQuestError(HTTPException):
    """Base class for all API errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class InvalidRequest(StayQuestError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class Unauthorized(StayQuestError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class NotFound(StayQuestError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class PaymentIncomplete(StayQuestError):
    """Checkout session exists but has not been paid."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Payment not completed"


class MissingMetadata(StayQuestError):
    """Checkout session metadata cannot be turned into a booking."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Missing booking metadata"


class SessionRetrievalError(StayQuestError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Failed to retrieve checkout session"


class PersistenceError(StayQuestError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Failed to save booking"


class UpstreamError(StayQuestError):
    """An external provider (places, identity, payment) failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Upstream service error"

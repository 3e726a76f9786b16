from stayquest.schemas.auth import Credentials, AuthResponse, SessionResponse
from stayquest.schemas.booking import (
    BookingResponse, BookingCancelResponse, VerifyBookingRequest, VerifyBookingResponse,
)
from stayquest.schemas.checkout import (
    CheckoutSessionCreate, CheckoutUrlResponse, BookingMetadata, CheckoutSession,
)
from stayquest.schemas.favorite import FavoriteCreate, FavoriteResponse, FavoriteRemoveResponse
from stayquest.schemas.place import PlaceSummary, PlaceDetails, NearbySearchResponse

__all__ = [
    "Credentials", "AuthResponse", "SessionResponse",
    "BookingResponse", "BookingCancelResponse", "VerifyBookingRequest", "VerifyBookingResponse",
    "CheckoutSessionCreate", "CheckoutUrlResponse", "BookingMetadata", "CheckoutSession",
    "FavoriteCreate", "FavoriteResponse", "FavoriteRemoveResponse",
    "PlaceSummary", "PlaceDetails", "NearbySearchResponse",
]

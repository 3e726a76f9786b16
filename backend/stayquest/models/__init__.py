from stayquest.models.booking import Booking, BookingStatus
from stayquest.models.favorite import Favorite

__all__ = ["Booking", "BookingStatus", "Favorite"]

"""
Places search with a Redis read-through cache on nearby searches.
"""

from stayquest.infrastructure.places_client import PlacesClient
from stayquest.schemas.place import PlaceDetails, PlaceSummary
from stayquest.services.cache_service import get_cached_places, make_nearby_key, set_cached_places


async def search_nearby(
    places: PlacesClient,
    lat: float,
    lng: float,
    radius: int,
) -> tuple[list[PlaceSummary], bool]:
    """Returns (results, served_from_cache)."""
    key = make_nearby_key(lat, lng, radius)
    cached = await get_cached_places(key)
    if cached is not None:
        return [PlaceSummary.model_validate(item) for item in cached], True

    results = await places.search_nearby(lat, lng, radius)
    await set_cached_places(key, [place.model_dump() for place in results])
    return results, False


async def get_place_details(places: PlacesClient, place_id: str) -> PlaceDetails:
    return await places.get_details(place_id)

"""
Places search endpoints with Redis caching on nearby searches.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from stayquest.core.config import get_settings
from stayquest.core.exceptions import InvalidRequest
from stayquest.infrastructure.places_client import PlacesClient, get_places_client
from stayquest.schemas.place import NearbySearchResponse, PlaceDetails
from stayquest.services.places_service import get_place_details, search_nearby

router = APIRouter(prefix="/places", tags=["Places"])
settings = get_settings()


@router.get("/nearby", response_model=NearbySearchResponse)
async def nearby_lodging(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: int = Query(settings.PLACES_DEFAULT_RADIUS, gt=0, le=50000),
    places: PlacesClient = Depends(get_places_client),
):
    """Lodging around a coordinate. Results are cached for REDIS_CACHE_TTL seconds."""
    if lat is None or lng is None:
        raise InvalidRequest("Missing lat or lng parameters")
    results, cached = await search_nearby(places, lat, lng, radius)
    return NearbySearchResponse(results=results, cached=cached)


@router.get("/{place_id}", response_model=PlaceDetails)
async def place_details(
    place_id: str,
    places: PlacesClient = Depends(get_places_client),
):
    return await get_place_details(places, place_id)

"""
Places Search Adapter: pass-through to the Google Places web service.
"""

from typing import Any, Optional

import httpx

from stayquest.core.config import get_settings
from stayquest.core.exceptions import NotFound, UpstreamError
from stayquest.core.logging import get_logger
from stayquest.core.metrics import record_places_request
from stayquest.schemas.place import PlaceDetails, PlaceSummary

logger = get_logger(__name__)

DETAIL_FIELDS = "name,rating,formatted_address,photos,types"


class PlacesClient:
    def __init__(self, api_key: str, client: httpx.AsyncClient):
        self.api_key = api_key
        self.client = client

    async def _get(self, endpoint: str, path: str, params: dict) -> dict[str, Any]:
        try:
            response = await self.client.get(path, params={**params, "key": self.api_key})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            record_places_request(endpoint, success=False)
            logger.error("places_request_failed", endpoint=endpoint, error=str(e))
            raise UpstreamError("Places service unavailable")

        provider_status = payload.get("status", "OK")
        if provider_status in ("NOT_FOUND", "INVALID_REQUEST") and endpoint == "details":
            record_places_request(endpoint, success=False)
            raise NotFound("Place not found")
        if provider_status not in ("OK", "ZERO_RESULTS"):
            record_places_request(endpoint, success=False)
            logger.error(
                "places_request_rejected",
                endpoint=endpoint,
                status=provider_status,
                message=payload.get("error_message"),
            )
            raise UpstreamError(f"Places service error: {provider_status}")

        record_places_request(endpoint, success=True)
        return payload

    async def search_nearby(self, lat: float, lng: float, radius: int) -> list[PlaceSummary]:
        """Lodging near a coordinate."""
        payload = await self._get(
            "nearby",
            "/nearbysearch/json",
            {"location": f"{lat},{lng}", "radius": radius, "type": "lodging"},
        )
        places = []
        for item in payload.get("results", []):
            photos = item.get("photos") or []
            places.append(
                PlaceSummary(
                    place_id=item["place_id"],
                    name=item.get("name", ""),
                    vicinity=item.get("vicinity"),
                    rating=item.get("rating"),
                    photo_ref=photos[0].get("photo_reference") if photos else None,
                )
            )
        logger.info("places_nearby_searched", lat=lat, lng=lng, radius=radius, count=len(places))
        return places

    async def get_details(self, place_id: str) -> PlaceDetails:
        payload = await self._get(
            "details",
            "/details/json",
            {"place_id": place_id, "fields": DETAIL_FIELDS},
        )
        result = payload.get("result") or {}
        if not result:
            raise NotFound("Place not found")
        return PlaceDetails(
            place_id=place_id,
            name=result.get("name", ""),
            rating=result.get("rating"),
            address=result.get("formatted_address"),
            photos=[p["photo_reference"] for p in result.get("photos", []) if p.get("photo_reference")],
            types=result.get("types", []),
        )

    async def close(self) -> None:
        await self.client.aclose()


_places_client: Optional[PlacesClient] = None


def get_places_client() -> PlacesClient:
    """Dependency returning the process-wide places client."""
    global _places_client
    if _places_client is None:
        settings = get_settings()
        _places_client = PlacesClient(
            api_key=settings.GOOGLE_PLACES_API_KEY,
            client=httpx.AsyncClient(base_url=settings.PLACES_BASE_URL, timeout=settings.PLACES_TIMEOUT),
        )
    return _places_client


async def close_places_client() -> None:
    global _places_client
    if _places_client:
        await _places_client.close()
        _places_client = None

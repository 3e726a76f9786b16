"""
Pydantic schemas for places search results.
"""

from typing import Optional

from pydantic import BaseModel, Field


class PlaceSummary(BaseModel):
    place_id: str
    name: str
    vicinity: Optional[str] = None
    rating: Optional[float] = None
    photo_ref: Optional[str] = None


class PlaceDetails(BaseModel):
    place_id: str
    name: str
    rating: Optional[float] = None
    address: Optional[str] = None
    photos: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)


class NearbySearchResponse(BaseModel):
    results: list[PlaceSummary]
    cached: bool = False

"""
Pydantic schemas for favorites.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class FavoriteCreate(BaseModel):
    place_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    vicinity: Optional[str] = Field(None, max_length=500)
    photo_ref: Optional[str] = Field(None, max_length=1000)


class FavoriteResponse(BaseModel):
    id: int
    user_id: str
    place_id: str
    name: str
    vicinity: Optional[str]
    photo_ref: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class FavoriteRemoveResponse(BaseModel):
    success: bool = True
    removed: int

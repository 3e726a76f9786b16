"""
Favorite places of the authenticated user.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stayquest.db.session import get_db
from stayquest.core.security import AuthSession, get_current_session
from stayquest.schemas.favorite import FavoriteCreate, FavoriteRemoveResponse, FavoriteResponse
from stayquest.services.favorite_service import add_favorite, list_favorites, remove_favorite

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("/", response_model=list[FavoriteResponse])
async def list_favorites_endpoint(
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    return await list_favorites(db, session.user_id)


@router.post("/", response_model=FavoriteResponse)
async def add_favorite_endpoint(
    favorite_data: FavoriteCreate,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Bookmark a place. Re-adding the same place returns the existing favorite."""
    return await add_favorite(db, session.user_id, favorite_data)


@router.delete("/{place_id}", response_model=FavoriteRemoveResponse)
async def remove_favorite_endpoint(
    place_id: str,
    session: AuthSession = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    removed = await remove_favorite(db, session.user_id, place_id)
    return FavoriteRemoveResponse(removed=removed)

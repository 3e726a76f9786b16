"""
Favorites store, scoped to the authenticated user.
"""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stayquest.core.exceptions import PersistenceError
from stayquest.core.logging import get_logger
from stayquest.models.favorite import Favorite
from stayquest.schemas.favorite import FavoriteCreate

logger = get_logger(__name__)


async def _get_favorite(db: AsyncSession, user_id: str, place_id: str) -> Optional[Favorite]:
    result = await db.execute(
        select(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.place_id == place_id,
        )
    )
    return result.scalar_one_or_none()


async def list_favorites(db: AsyncSession, user_id: str) -> list[Favorite]:
    """Newest first. Degrades to [] on storage errors."""
    try:
        result = await db.execute(
            select(Favorite)
            .where(Favorite.user_id == user_id)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        )
    except SQLAlchemyError as e:
        logger.warning("favorites_list_failed", user_id=user_id, error=str(e))
        return []
    return list(result.scalars().all())


async def add_favorite(db: AsyncSession, user_id: str, data: FavoriteCreate) -> Favorite:
    """
    Bookmark a place. Adding an existing (user, place) pair returns the
    stored row instead of creating a duplicate.
    """
    existing = await _get_favorite(db, user_id, data.place_id)
    if existing:
        return existing

    favorite = Favorite(
        user_id=user_id,
        place_id=data.place_id,
        name=data.name,
        vicinity=data.vicinity,
        photo_ref=data.photo_ref,
    )
    db.add(favorite)
    try:
        await db.flush()
    except IntegrityError:
        # Concurrent add of the same place
        await db.rollback()
        existing = await _get_favorite(db, user_id, data.place_id)
        if existing is None:
            raise PersistenceError("Failed to save favorite")
        return existing
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("favorite_add_failed", user_id=user_id, place_id=data.place_id, error=str(e))
        raise PersistenceError("Failed to save favorite")

    await db.refresh(favorite)
    logger.info("favorite_added", favorite_id=favorite.id, user_id=user_id, place_id=data.place_id)
    return favorite


async def remove_favorite(db: AsyncSession, user_id: str, place_id: str) -> int:
    """Delete by (user, place). Returns rows removed; 0 is not an error."""
    try:
        result = await db.execute(
            delete(Favorite).where(
                Favorite.user_id == user_id,
                Favorite.place_id == place_id,
            )
        )
    except SQLAlchemyError as e:
        logger.error("favorite_remove_failed", user_id=user_id, place_id=place_id, error=str(e))
        raise PersistenceError("Failed to remove favorite")

    logger.info("favorite_removed", user_id=user_id, place_id=place_id, removed=result.rowcount)
    return result.rowcount

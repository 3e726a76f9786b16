"""
Favorite model: a place a user bookmarked from search results.
"""

from sqlalchemy import Column, Integer, String, UniqueConstraint

from stayquest.db.base import Base, TimestampMixin


class Favorite(Base, TimestampMixin):
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    place_id = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    vicinity = Column(String(500), nullable=True)
    photo_ref = Column(String(1000), nullable=True)

    __table_args__ = (
        # One favorite per user per place
        UniqueConstraint("user_id", "place_id", name="uq_user_place_favorite"),
    )

    def __repr__(self) -> str:
        return f"<Favorite(id={self.id}, user={self.user_id}, place={self.place_id})>"

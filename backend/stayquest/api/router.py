"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from stayquest.api.routes import auth, bookings, checkout, favorites, places, webhooks

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(places.router)
api_router.include_router(checkout.router)
api_router.include_router(bookings.router)
api_router.include_router(favorites.router)
api_router.include_router(webhooks.router)

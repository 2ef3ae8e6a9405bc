"""API router initialization.

Every sub-router defines its own prefix; api_router is mounted at the app
root in main.py (health included, so orchestrators hit /health/live directly).
"""

from fastapi import APIRouter

from rankify.api.routers import catalog, friends, health, notifications, profile, rankings

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(profile.router)
api_router.include_router(friends.router)
api_router.include_router(rankings.router)
api_router.include_router(notifications.router)
api_router.include_router(catalog.router)

__all__ = [
    "api_router",
    "catalog",
    "friends",
    "health",
    "notifications",
    "profile",
    "rankings",
]

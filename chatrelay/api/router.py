"""Top-level API router."""
from fastapi import APIRouter

from chatrelay.api.endpoints import chats, health, notifications, realtime, uploads, users


api_router = APIRouter()
api_router.include_router(uploads.router)
api_router.include_router(chats.router)
api_router.include_router(users.router)
api_router.include_router(notifications.router)
api_router.include_router(realtime.router)
api_router.include_router(health.router)

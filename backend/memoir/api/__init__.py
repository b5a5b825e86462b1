"""API router composition for the backend.

The module assembles individual route groups into a single `api_router` that can be mounted on the app.
"""

from fastapi import APIRouter

from memoir.api.routes import answers_router, chat_router, profiles_router, reindex_router

api_router = APIRouter()
api_router.include_router(profiles_router)
api_router.include_router(answers_router)
api_router.include_router(chat_router)
api_router.include_router(reindex_router)

__all__ = ["api_router"]

"""Route exports for the API layer.

Re-exports each router so callers can include all endpoints with a single import.
"""

from .answers import router as answers_router
from .chat import router as chat_router
from .profiles import router as profiles_router
from .reindex import router as reindex_router

__all__ = ["answers_router", "chat_router", "profiles_router", "reindex_router"]

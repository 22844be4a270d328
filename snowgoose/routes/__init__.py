"""API routes for Snowgoose."""

from .chat import router as chat_router
from .models import router as models_router
from .users import router as users_router

__all__ = ["chat_router", "models_router", "users_router"]

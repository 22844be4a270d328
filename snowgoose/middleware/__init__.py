"""Request authentication."""

from .auth import get_current_user

__all__ = ["get_current_user"]

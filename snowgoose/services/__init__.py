"""Services for Snowgoose."""

from .auth import AuthProvider, SupabaseAuthProvider
from .container import Services, build_services, get_services
from .credits import CreditService
from .relay import StreamRelay
from .storage import LocalStorage, ObjectStorage, SupabaseStorage

__all__ = [
    "AuthProvider",
    "CreditService",
    "LocalStorage",
    "ObjectStorage",
    "Services",
    "StreamRelay",
    "SupabaseAuthProvider",
    "SupabaseStorage",
    "build_services",
    "get_services",
]

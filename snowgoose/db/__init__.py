"""Persistence layer."""

from .database import Database
from .repositories import (
    APIVendorRepository,
    CreditRepository,
    ModelRepository,
    UserRepository,
)

__all__ = [
    "APIVendorRepository",
    "CreditRepository",
    "Database",
    "ModelRepository",
    "UserRepository",
]

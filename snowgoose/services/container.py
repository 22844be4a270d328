"""Application-wide service wiring."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..config import settings
from ..db import APIVendorRepository, CreditRepository, Database, ModelRepository, UserRepository
from .auth import AuthProvider, create_auth_provider
from .credits import CreditService
from .storage import ObjectStorage, create_storage

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Shared handles used by the routes."""

    db: Database
    users: UserRepository
    credit_repo: CreditRepository
    models: ModelRepository
    vendors: APIVendorRepository
    storage: ObjectStorage
    credits: CreditService
    auth: AuthProvider

    async def close(self) -> None:
        await self.storage.close()
        await self.auth.close()
        self.db.close()


def build_services(
    db: Optional[Database] = None,
    storage: Optional[ObjectStorage] = None,
    auth: Optional[AuthProvider] = None,
) -> Services:
    """Build services from settings, with optional replacements for tests."""
    if db is None:
        db = Database(settings.DATABASE_PATH)
    db.connect()

    users = UserRepository(db)
    credit_repo = CreditRepository(db)
    if settings.DOLLARS_PER_CREDIT is None:
        logger.warning("DOLLARS_PER_CREDIT is not set; chat requests will fail")

    return Services(
        db=db,
        users=users,
        credit_repo=credit_repo,
        models=ModelRepository(db),
        vendors=APIVendorRepository(db),
        storage=storage or create_storage(),
        credits=CreditService(
            users,
            credit_repo,
            settings.DOLLARS_PER_CREDIT,
            settings.IMAGE_GENERATION_SURCHARGE,
        ),
        auth=auth or create_auth_provider(),
    )


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the services built at startup."""
    return request.app.state.services

"""Authentication dependency for user-scoped routes."""

import logging
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..errors import Unauthorized
from ..models.catalog import UserRecord
from ..services.container import Services, get_services

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

SESSION_COOKIE = "sb-access-token"


def extract_access_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    services: Services = Depends(get_services),
) -> UserRecord:
    """Resolve the session to a local user or raise Unauthorized."""
    token = extract_access_token(request, credentials)
    if not token:
        raise Unauthorized("Missing session token")

    auth_id = await services.auth.resolve(token)
    if not auth_id:
        client_host = request.client.host if request.client else "unknown"
        logger.warning(f"Invalid session token from {client_host}")
        raise Unauthorized("Session token could not be resolved")

    user = await services.users.find_by_auth_id(auth_id)
    if user is None:
        logger.warning(f"No local user for auth id {auth_id}")
        raise Unauthorized(f"No user for auth id {auth_id}")
    return user

"""Resolution of session tokens to auth identities."""

import logging
from typing import Optional

import httpx

from ..config import settings
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class AuthProvider:
    """Maps a session access token to the provider's user id."""

    async def resolve(self, access_token: str) -> Optional[str]:
        raise NotImplementedError

    async def close(self) -> None:
        """Release any held connections."""


class SupabaseAuthProvider(AuthProvider):
    """Validates tokens against the Supabase Auth user endpoint."""

    def __init__(self, url: str, api_key: str, client: Optional[httpx.AsyncClient] = None):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

    async def resolve(self, access_token: str) -> Optional[str]:
        try:
            response = await self._client.get(
                f"{self.url}/auth/v1/user",
                headers={"Authorization": f"Bearer {access_token}", "apikey": self.api_key},
            )
        except httpx.HTTPError as e:
            logger.error(f"Supabase auth request failed: {e}")
            return None

        if response.status_code != 200:
            logger.info(f"Supabase rejected session token (status {response.status_code})")
            return None
        return response.json().get("id")

    async def close(self) -> None:
        await self._client.aclose()


def create_auth_provider() -> AuthProvider:
    """Build the auth provider from settings."""
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required for auth")
    return SupabaseAuthProvider(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)

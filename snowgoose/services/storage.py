"""Durable object storage for uploaded and generated images."""

import base64
import binascii
import hashlib
import logging
import uuid
from pathlib import Path
from typing import Optional

import httpx

from ..config import settings
from ..errors import ConfigurationError, ImageUploadError

logger = logging.getLogger(__name__)

# File extension mapping for image MIME types
MIME_TO_EXT = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def decode_base64(base64_data: str) -> bytes:
    """Decode a base64 payload, raising ImageUploadError when malformed."""
    try:
        return base64.b64decode(base64_data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageUploadError(f"Invalid base64 image data: {e}") from e


class ObjectStorage:
    """Uploads base64 images and returns a stable URL."""

    async def upload(self, base64_data: str, mime_type: str, owner: Optional[str] = None) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        """Release any held connections."""


class SupabaseStorage(ObjectStorage):
    """Supabase Storage bucket, returning signed URLs."""

    def __init__(
        self,
        url: str,
        service_key: str,
        bucket: str,
        signed_url_ttl: int = 600,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url.rstrip("/")
        self.bucket = bucket
        self.signed_url_ttl = signed_url_ttl
        self._client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    async def upload(self, base64_data: str, mime_type: str, owner: Optional[str] = None) -> str:
        data = decode_base64(base64_data)
        ext = MIME_TO_EXT.get(mime_type, "")
        path = f"{owner or 'shared'}/{uuid.uuid4().hex}{ext}"

        try:
            response = await self._client.post(
                f"{self.url}/storage/v1/object/{self.bucket}/{path}",
                content=data,
                headers={**self._headers, "Content-Type": mime_type, "x-upsert": "true"},
            )
            response.raise_for_status()

            signed = await self._client.post(
                f"{self.url}/storage/v1/object/sign/{self.bucket}/{path}",
                json={"expiresIn": self.signed_url_ttl},
                headers=self._headers,
            )
            signed.raise_for_status()
            signed_path = signed.json().get("signedURL")
        except httpx.HTTPError as e:
            raise ImageUploadError(f"Supabase upload failed for {path}: {e}") from e

        if not signed_path:
            raise ImageUploadError(f"Supabase returned no signed URL for {path}")

        logger.debug(f"Uploaded {len(data)} bytes to {self.bucket}/{path}")
        return f"{self.url}/storage/v1{signed_path}"

    async def close(self) -> None:
        await self._client.aclose()


class LocalStorage(ObjectStorage):
    """Directory on local disk, served by the app under a media URL."""

    def __init__(self, media_dir: Path | str, base_url: str = "/media"):
        self.media_dir = Path(media_dir)
        self.base_url = base_url.rstrip("/")
        self.media_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def get_file_hash(data: bytes) -> str:
        """Generate short hash for file content."""
        return hashlib.sha256(data).hexdigest()[:16]

    async def upload(self, base64_data: str, mime_type: str, owner: Optional[str] = None) -> str:
        data = decode_base64(base64_data)
        filename = f"image_{self.get_file_hash(data)}{MIME_TO_EXT.get(mime_type, '')}"
        path = self.media_dir / filename

        try:
            # Write if not exists
            if not path.exists():
                path.write_bytes(data)
                logger.debug(f"Stored image: {path}")
        except OSError as e:
            raise ImageUploadError(f"Failed to write {path}: {e}") from e

        return f"{self.base_url}/{filename}"


def create_storage() -> ObjectStorage:
    """Build the storage backend selected in settings."""
    if settings.STORAGE_BACKEND == "local":
        return LocalStorage(settings.MEDIA_DIR, settings.MEDIA_BASE_URL)

    if settings.STORAGE_BACKEND == "supabase":
        missing = [
            name
            for name in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "SUPABASE_VISION_STORAGE_BUCKET")
            if not getattr(settings, name)
        ]
        if missing:
            raise ConfigurationError(f"Supabase storage requires {', '.join(missing)}")
        return SupabaseStorage(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY,
            settings.SUPABASE_VISION_STORAGE_BUCKET,
            settings.SIGNED_URL_TTL,
        )

    raise ConfigurationError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

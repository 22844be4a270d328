"""Configuration management for Snowgoose."""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    """Read an optional float from the environment."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


class Settings:
    """Application settings."""

    # Server
    PORT: int = int(os.getenv("PORT", "8790"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    CORS_ORIGINS: list[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]

    # Debug
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "false").lower() == "true"
    DEBUG_LOG_PAYLOADS: bool = os.getenv("DEBUG_LOG_PAYLOADS", "false").lower() == "true"
    DEBUG_LOG_MAX_LENGTH: int = int(os.getenv("DEBUG_LOG_MAX_LENGTH", "2000"))

    # Logging
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "false").lower() == "true"
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_FILE: str = os.getenv("LOG_FILE", "snowgoose.log")

    # Database
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "snowgoose.db")

    # Billing
    # Dollars per credit. Required for any request that incurs a cost.
    DOLLARS_PER_CREDIT: Optional[float] = _optional_float("DOLLARS_PER_CREDIT")
    IMAGE_GENERATION_SURCHARGE: float = float(os.getenv("IMAGE_GENERATION_SURCHARGE", "0.25"))

    # Vendors
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
    OPENAI_ORG_ID: Optional[str] = os.getenv("OPENAI_ORG_ID")
    ANTHROPIC_API_KEY: Optional[str] = os.getenv("ANTHROPIC_API_KEY")
    GOOGLE_API_KEY: Optional[str] = os.getenv("GOOGLE_API_KEY")
    OPENROUTER_API_KEY: Optional[str] = os.getenv("OPENROUTER_API_KEY")
    OPENROUTER_BASE_URL: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")

    # Number of partial images requested from the image generation tool
    PARTIAL_IMAGES: int = int(os.getenv("PARTIAL_IMAGES", "1"))

    # Supabase (auth + object storage)
    SUPABASE_URL: Optional[str] = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_KEY: Optional[str] = os.getenv("SUPABASE_SERVICE_KEY")
    SUPABASE_VISION_STORAGE_BUCKET: Optional[str] = os.getenv("SUPABASE_VISION_STORAGE_BUCKET")
    SIGNED_URL_TTL: int = int(os.getenv("SIGNED_URL_TTL", "600"))

    # Storage backend: "supabase" or "local"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "supabase").lower()
    MEDIA_DIR: str = os.getenv("MEDIA_DIR", "media")
    MEDIA_BASE_URL: str = os.getenv("MEDIA_BASE_URL", "/media")

    # Timeout (seconds) for storage and auth HTTP calls
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "60"))


settings = Settings()

"""Vendor adapter registry."""

import logging
from typing import Dict, Optional, Type

from ..config import settings
from ..errors import UnsupportedAdapter
from ..models.catalog import ModelConfig
from .anthropic_adapter import AnthropicAdapter
from .base import VendorAdapter, VendorConfig
from .google_adapter import GoogleAdapter
from .openai_adapter import OpenAIAdapter
from .openrouter_adapter import OpenRouterAdapter

logger = logging.getLogger(__name__)


class AIVendorFactory:
    """Creates a vendor adapter for a model from registered vendor configs."""

    _adapters: Dict[str, Type[VendorAdapter]] = {
        "openai": OpenAIAdapter,
        "anthropic": AnthropicAdapter,
        "google": GoogleAdapter,
        "openrouter": OpenRouterAdapter,
    }
    _vendor_configs: Dict[str, VendorConfig] = {}

    @classmethod
    def register_adapter(cls, vendor_name: str, adapter_cls: Type[VendorAdapter]) -> None:
        cls._adapters[vendor_name.lower()] = adapter_cls

    @classmethod
    def set_vendor_config(cls, vendor_name: str, config: VendorConfig) -> None:
        cls._vendor_configs[vendor_name.lower()] = config

    @classmethod
    def get_vendor_config(cls, vendor_name: str) -> Optional[VendorConfig]:
        return cls._vendor_configs.get(vendor_name.lower())

    @classmethod
    def clear(cls) -> None:
        """Forget all vendor configs."""
        cls._vendor_configs.clear()

    @classmethod
    def get_adapter(cls, vendor_name: str, model_config: ModelConfig) -> VendorAdapter:
        """Return a streaming-capable adapter or raise UnsupportedAdapter."""
        name = vendor_name.lower()
        adapter_cls = cls._adapters.get(name)
        if adapter_cls is None:
            raise UnsupportedAdapter(f"Unsupported vendor: {vendor_name}")

        config = cls._vendor_configs.get(name)
        if config is None:
            raise UnsupportedAdapter(f"No configuration found for vendor: {vendor_name}")

        adapter = adapter_cls(config, model_config)
        if not adapter.supports_streaming:
            raise UnsupportedAdapter(f"Adapter for {vendor_name} does not support streaming")
        return adapter


def init_vendors() -> list[str]:
    """Register configs for every vendor with credentials in settings."""
    if settings.OPENAI_API_KEY:
        AIVendorFactory.set_vendor_config(
            "openai",
            VendorConfig(api_key=settings.OPENAI_API_KEY, organization_id=settings.OPENAI_ORG_ID),
        )
    if settings.ANTHROPIC_API_KEY:
        AIVendorFactory.set_vendor_config(
            "anthropic", VendorConfig(api_key=settings.ANTHROPIC_API_KEY)
        )
    if settings.GOOGLE_API_KEY:
        AIVendorFactory.set_vendor_config("google", VendorConfig(api_key=settings.GOOGLE_API_KEY))
    if settings.OPENROUTER_API_KEY:
        AIVendorFactory.set_vendor_config(
            "openrouter",
            VendorConfig(api_key=settings.OPENROUTER_API_KEY, base_url=settings.OPENROUTER_BASE_URL),
        )

    configured = sorted(AIVendorFactory._vendor_configs)
    logger.info(f"Configured vendors: {configured or 'none'}")
    return configured

"""Vendor adapters that stream upstream model responses as events."""

from .anthropic_adapter import AnthropicAdapter
from .base import (
    AIRequestOptions,
    VendorAdapter,
    VendorConfig,
    compute_cost,
    guess_mime_type,
    parse_data_url,
)
from .factory import AIVendorFactory, init_vendors
from .google_adapter import GoogleAdapter
from .openai_adapter import OpenAIAdapter
from .openrouter_adapter import OpenRouterAdapter

__all__ = [
    "AIRequestOptions",
    "AIVendorFactory",
    "AnthropicAdapter",
    "GoogleAdapter",
    "OpenAIAdapter",
    "OpenRouterAdapter",
    "VendorAdapter",
    "VendorConfig",
    "compute_cost",
    "guess_mime_type",
    "init_vendors",
    "parse_data_url",
]

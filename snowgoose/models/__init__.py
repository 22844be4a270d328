"""Data models for chat requests, stream events and the model catalog."""

from .catalog import (
    APIVendorRecord,
    CreditBalance,
    ModelConfig,
    ModelInfo,
    ModelListResponse,
    ModelRecord,
    UserRecord,
    VendorInfo,
    VendorListResponse,
)
from .chat import (
    ChatRequest,
    ContentBlock,
    ErrorBlock,
    ImageBlock,
    Message,
    RedactedThinkingBlock,
    TextBlock,
    ThinkingBlock,
)
from .common import CamelModel, UsageSummary
from .events import (
    ErrorEvent,
    ImageDataEvent,
    ImageEvent,
    MetaEvent,
    StreamCompleteEvent,
    StreamEvent,
    TextDeltaEvent,
    ThinkingDeltaEvent,
    WebSearchEvent,
    parse_event,
)

__all__ = [
    # Common
    "CamelModel",
    "UsageSummary",
    # Catalog
    "APIVendorRecord",
    "CreditBalance",
    "ModelConfig",
    "ModelInfo",
    "ModelListResponse",
    "ModelRecord",
    "UserRecord",
    "VendorInfo",
    "VendorListResponse",
    # Chat
    "ChatRequest",
    "ContentBlock",
    "ErrorBlock",
    "ImageBlock",
    "Message",
    "RedactedThinkingBlock",
    "TextBlock",
    "ThinkingBlock",
    # Events
    "ErrorEvent",
    "ImageDataEvent",
    "ImageEvent",
    "MetaEvent",
    "StreamCompleteEvent",
    "StreamEvent",
    "TextDeltaEvent",
    "ThinkingDeltaEvent",
    "WebSearchEvent",
    "parse_event",
]

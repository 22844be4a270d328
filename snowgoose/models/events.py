"""Stream event models.

Every frame sent to the browser is one of these events, serialized as a
JSON object with a ``type`` discriminator. Adapters produce the upstream
kinds (``text``, ``thinking``, ``web_search``, ``meta``, ``image_data``,
``error``); the relay additionally synthesizes ``image`` and
``stream-complete``.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from .common import CamelModel, UsageSummary


# =============================================================================
# Content deltas (forwarded as-is)
# =============================================================================


class TextDeltaEvent(CamelModel):
    """Incremental assistant text."""

    type: Literal["text"] = "text"
    text: str


class ThinkingDeltaEvent(CamelModel):
    """Incremental reasoning text."""

    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: Optional[str] = None


class WebSearchEvent(CamelModel):
    """Progress of a provider-side web search."""

    type: Literal["web_search"] = "web_search"
    status: str
    query: Optional[str] = None


# =============================================================================
# Events the relay acts on
# =============================================================================


class MetaEvent(CamelModel):
    """Terminal summary of an upstream response."""

    type: Literal["meta"] = "meta"
    response_id: Optional[str] = None
    usage: Optional[UsageSummary] = None


class ImageDataEvent(CamelModel):
    """Raw image payload from an image generation call.

    May repeat for the same generation id, each time with a more complete
    image. Only the latest payload per id is kept for upload.
    """

    type: Literal["image_data"] = "image_data"
    generation_id: Optional[str] = None
    data: str
    mime_type: str = "image/png"
    partial_index: Optional[int] = None


class ErrorEvent(CamelModel):
    """User-safe error. Scoped to one image when generation_id is set."""

    type: Literal["error"] = "error"
    public_message: str
    generation_id: Optional[str] = None


# =============================================================================
# Events synthesized by the relay
# =============================================================================


class ImageEvent(CamelModel):
    """Final, durable URL of a generated image."""

    type: Literal["image"] = "image"
    url: str
    generation_id: Optional[str] = None


class StreamCompleteEvent(CamelModel):
    """Sentinel closing a successful stream."""

    type: Literal["stream-complete"] = "stream-complete"


StreamEvent = Annotated[
    Union[
        TextDeltaEvent,
        ThinkingDeltaEvent,
        WebSearchEvent,
        MetaEvent,
        ImageDataEvent,
        ErrorEvent,
        ImageEvent,
        StreamCompleteEvent,
    ],
    Field(discriminator="type"),
]

stream_event_adapter: TypeAdapter = TypeAdapter(StreamEvent)


def parse_event(data: dict) -> CamelModel:
    """Parse a wire dict back into its event model."""
    return stream_event_adapter.validate_python(data)

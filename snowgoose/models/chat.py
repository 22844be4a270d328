"""Chat request models."""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field

from .common import CamelModel


# =============================================================================
# Content blocks
# =============================================================================


class TextBlock(CamelModel):
    """Plain text content."""

    type: Literal["text"] = "text"
    text: str


class ImageBlock(CamelModel):
    """Image content, referenced by URL."""

    type: Literal["image"] = "image"
    url: str
    generation_id: Optional[str] = None


class ThinkingBlock(CamelModel):
    """Model reasoning returned by thinking-capable models."""

    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: Optional[str] = None


class RedactedThinkingBlock(CamelModel):
    """Encrypted reasoning that must be passed back unchanged."""

    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


class ErrorBlock(CamelModel):
    """Error shown in the conversation in place of a reply."""

    type: Literal["error"] = "error"
    public_message: str


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock, ThinkingBlock, RedactedThinkingBlock, ErrorBlock],
    Field(discriminator="type"),
]


# =============================================================================
# Request
# =============================================================================


class Message(CamelModel):
    """A single conversation turn."""

    role: Literal["user", "assistant", "system"]
    content: Union[str, List[ContentBlock]]


class ChatRequest(CamelModel):
    """Body of POST /api/chat/stream."""

    model_id: int
    response_history: List[Message] = Field(min_length=1)
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, gt=0)
    budget_tokens: Optional[int] = None
    use_image_generation: Optional[bool] = False
    use_web_search: Optional[bool] = False
    # Inline data URI (data:<mime>;base64,<payload>) for a newly attached image
    image_data: Optional[str] = None
    previous_response_id: Optional[str] = None

    # Accepted from the chat UI; prompts are already folded into system_prompt
    persona_id: Optional[int] = None
    output_format_id: Optional[int] = None

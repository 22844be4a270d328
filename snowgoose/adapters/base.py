"""Base adapter types and helpers shared by all vendors."""

import mimetypes
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..models.catalog import ModelConfig
from ..models.chat import Message, TextBlock
from ..models.common import UsageSummary

_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.+)$",
    re.DOTALL,
)


@dataclass
class VendorConfig:
    """Credentials for one vendor."""

    api_key: str
    organization_id: Optional[str] = None
    base_url: Optional[str] = None


@dataclass
class AIRequestOptions:
    """Vendor-agnostic request built from a chat request."""

    model: str
    messages: List[Message]
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = None
    thinking_mode: bool = False
    budget_tokens: Optional[int] = None
    tools: List[Dict[str, Any]] = field(default_factory=list)
    previous_response_id: Optional[str] = None

    def has_tool(self, tool_type: str) -> bool:
        """Check whether a tool of the given type was requested."""
        return any(t.get("type") == tool_type for t in self.tools)


class VendorAdapter:
    """Uniform streaming interface over one provider.

    Subclasses implement ``stream_response(options)``, an async generator of
    stream events ending with a ``meta`` event that carries usage. Adapters
    without it cannot serve the chat stream.
    """

    vendor_name: str = ""

    def __init__(self, config: VendorConfig, model_config: ModelConfig):
        self.config = config
        self.model_config = model_config
        self._sdk_client: Any = None

    @property
    def supports_streaming(self) -> bool:
        return callable(getattr(self, "stream_response", None))

    def usage_summary(
        self,
        input_tokens: int,
        output_tokens: int,
        images_generated: int = 0,
        web_searches: int = 0,
    ) -> UsageSummary:
        """Build the usage summary reported on the meta event."""
        return UsageSummary(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_cost=compute_cost(
                self.model_config, input_tokens, output_tokens, images_generated, web_searches
            ),
            did_generate_image=images_generated > 0,
            web_search_count=web_searches,
        )


def compute_cost(
    config: ModelConfig,
    input_tokens: int,
    output_tokens: int,
    images_generated: int = 0,
    web_searches: int = 0,
) -> float:
    """Dollar cost of one response. Token costs are per million tokens."""
    cost = 0.0
    if config.input_token_cost:
        cost += input_tokens * config.input_token_cost / 1_000_000
    if config.output_token_cost:
        cost += output_tokens * config.output_token_cost / 1_000_000
    if images_generated and config.image_output_cost:
        cost += images_generated * config.image_output_cost
    if web_searches and config.web_search_cost:
        cost += web_searches * config.web_search_cost
    return cost


def parse_data_url(url: str) -> Optional[Tuple[str, str]]:
    """Split a base64 data URI into (mime_type, base64_payload)."""
    match = _DATA_URL_RE.match(url.strip())
    if not match:
        return None
    return match.group("mime") or "application/octet-stream", match.group("data")


def guess_mime_type(url: str, default: str = "image/png") -> str:
    """Guess a MIME type from a URL or data URI."""
    if url.startswith("data:"):
        parsed = parse_data_url(url)
        return parsed[0] if parsed else default
    path = url.split("?")[0]
    return mimetypes.guess_type(path)[0] or default


def content_blocks(message: Message) -> List[Any]:
    """Return message content as a list of blocks."""
    if isinstance(message.content, str):
        return [TextBlock(text=message.content)]
    return list(message.content)


def message_text(message: Message) -> str:
    """Concatenate the text blocks of a message."""
    if isinstance(message.content, str):
        return message.content
    return "\n".join(b.text for b in message.content if isinstance(b, TextBlock))

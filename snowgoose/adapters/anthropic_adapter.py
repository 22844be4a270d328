"""Anthropic adapter - streams the Messages API as Snowgoose events."""

import logging
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

from ..models.chat import (
    ImageBlock,
    Message,
    RedactedThinkingBlock,
    TextBlock,
    ThinkingBlock,
)
from ..models.events import MetaEvent, TextDeltaEvent, ThinkingDeltaEvent, WebSearchEvent
from .base import AIRequestOptions, VendorAdapter, content_blocks, message_text, parse_data_url

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096
WEB_SEARCH_MAX_USES = 5


class AnthropicAdapter(VendorAdapter):
    """Adapter for Anthropic Claude models."""

    vendor_name = "anthropic"

    @property
    def client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self._sdk_client is None:
            import anthropic

            self._sdk_client = anthropic.AsyncAnthropic(api_key=self.config.api_key)
        return self._sdk_client

    @staticmethod
    def process_content_block(block: Any) -> Optional[Dict[str, Any]]:
        """Convert a content block to Anthropic format."""
        if isinstance(block, TextBlock):
            return {"type": "text", "text": block.text}

        elif isinstance(block, ImageBlock):
            parsed = parse_data_url(block.url) if block.url.startswith("data:") else None
            if parsed:
                media_type, data = parsed
                return {
                    "type": "image",
                    "source": {"type": "base64", "media_type": media_type, "data": data},
                }
            return {"type": "image", "source": {"type": "url", "url": block.url}}

        elif isinstance(block, ThinkingBlock):
            if not block.signature:
                # Unsigned thinking is rejected by the API
                return None
            return {"type": "thinking", "thinking": block.thinking, "signature": block.signature}

        elif isinstance(block, RedactedThinkingBlock):
            return {"type": "redacted_thinking", "data": block.data}

        return None

    @classmethod
    def to_anthropic_messages(
        cls, messages: List[Message], system: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """Convert chat messages; system turns are folded into the system prompt."""
        system_parts = [system] if system else []
        converted = []
        for msg in messages:
            if msg.role == "system":
                system_parts.append(message_text(msg))
                continue
            blocks = [b for b in map(cls.process_content_block, content_blocks(msg)) if b]
            if blocks:
                converted.append({"role": msg.role, "content": blocks})
        return converted, ("\n\n".join(system_parts) or None)

    def build_params(self, options: AIRequestOptions) -> Dict[str, Any]:
        """Build keyword arguments for messages.stream."""
        messages, system = self.to_anthropic_messages(options.messages, options.system_prompt)
        max_tokens = options.max_tokens or DEFAULT_MAX_TOKENS

        params: Dict[str, Any] = {
            "model": options.model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            params["system"] = system
        if options.thinking_mode and options.budget_tokens:
            params["thinking"] = {"type": "enabled", "budget_tokens": options.budget_tokens}
            # max_tokens must exceed the thinking budget
            if max_tokens <= options.budget_tokens:
                params["max_tokens"] = options.budget_tokens + DEFAULT_MAX_TOKENS
        if options.has_tool("web_search"):
            params["tools"] = [
                {"type": "web_search_20250305", "name": "web_search", "max_uses": WEB_SEARCH_MAX_USES}
            ]
        return params

    async def stream_response(self, options: AIRequestOptions) -> AsyncGenerator[Any, None]:
        """Stream a response, yielding text, thinking and meta events."""
        params = self.build_params(options)
        logger.debug(
            f"Anthropic request: model={options.model}, thinking={'thinking' in params}, "
            f"tools={params.get('tools')}"
        )

        async with self.client.messages.stream(**params) as stream:
            async for event in stream:
                etype = getattr(event, "type", None)

                if etype == "content_block_delta":
                    delta = event.delta
                    if delta.type == "text_delta":
                        yield TextDeltaEvent(text=delta.text)
                    elif delta.type == "thinking_delta":
                        yield ThinkingDeltaEvent(thinking=delta.thinking)
                    elif delta.type == "signature_delta":
                        yield ThinkingDeltaEvent(thinking="", signature=delta.signature)

                elif etype == "content_block_start":
                    block = event.content_block
                    if block.type == "server_tool_use" and block.name == "web_search":
                        yield WebSearchEvent(status="in_progress")

            final = await stream.get_final_message()

        usage = final.usage
        server_tool_use = getattr(usage, "server_tool_use", None)
        web_searches = getattr(server_tool_use, "web_search_requests", 0) or 0
        yield MetaEvent(
            response_id=final.id,
            usage=self.usage_summary(
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
                web_searches=web_searches,
            ),
        )

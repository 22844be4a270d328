"""OpenAI adapter - streams the Responses API as Snowgoose events."""

import logging
from typing import Any, AsyncGenerator, Dict, List

from ..errors import UpstreamStreamError
from ..models.chat import ImageBlock, Message, TextBlock
from ..models.events import (
    ImageDataEvent,
    MetaEvent,
    TextDeltaEvent,
    ThinkingDeltaEvent,
    WebSearchEvent,
)
from .base import AIRequestOptions, VendorAdapter, content_blocks

logger = logging.getLogger(__name__)


class OpenAIAdapter(VendorAdapter):
    """Adapter for OpenAI models via the Responses API."""

    vendor_name = "openai"

    @property
    def client(self):
        """Lazy-init OpenAI client (only on first API call)."""
        if self._sdk_client is None:
            import openai

            self._sdk_client = openai.AsyncOpenAI(
                api_key=self.config.api_key,
                organization=self.config.organization_id,
                base_url=self.config.base_url,
            )
        return self._sdk_client

    @staticmethod
    def to_input_message(message: Message) -> Dict[str, Any]:
        """Convert a chat message to a Responses API input item."""
        if message.role == "assistant":
            texts = [b.text for b in content_blocks(message) if isinstance(b, TextBlock)]
            return {"role": "assistant", "content": "\n".join(texts)}

        parts: List[Dict[str, Any]] = []
        for block in content_blocks(message):
            if isinstance(block, TextBlock):
                parts.append({"type": "input_text", "text": block.text})
            elif isinstance(block, ImageBlock):
                parts.append({"type": "input_image", "image_url": block.url, "detail": "auto"})
        return {"role": message.role, "content": parts}

    def build_params(self, options: AIRequestOptions) -> Dict[str, Any]:
        """Build keyword arguments for responses.create."""
        messages = options.messages
        if options.previous_response_id:
            # Earlier turns are held server-side; only send the new user turn
            messages = messages[-1:]

        params: Dict[str, Any] = {
            "model": options.model,
            "input": [self.to_input_message(m) for m in messages],
            "stream": True,
        }
        if options.system_prompt:
            params["instructions"] = options.system_prompt
        if options.max_tokens:
            params["max_output_tokens"] = options.max_tokens
        if options.thinking_mode:
            params["reasoning"] = {"effort": "medium", "summary": "auto"}
        if options.previous_response_id:
            params["previous_response_id"] = options.previous_response_id

        tools = []
        for tool in options.tools:
            if tool["type"] == "image_generation":
                tools.append({"type": "image_generation", "partial_images": tool.get("partial_images", 1)})
            elif tool["type"] == "web_search":
                tools.append({"type": "web_search_preview"})
        if tools:
            params["tools"] = tools
        return params

    async def stream_response(self, options: AIRequestOptions) -> AsyncGenerator[Any, None]:
        """Stream a response, yielding text, thinking, image and meta events."""
        params = self.build_params(options)
        logger.debug(f"OpenAI request: model={options.model}, tools={params.get('tools')}")

        images_generated = set()
        web_searches = 0
        stream = await self.client.responses.create(**params)
        try:
            async for event in stream:
                etype = getattr(event, "type", None)

                if etype == "response.output_text.delta":
                    yield TextDeltaEvent(text=event.delta)

                elif etype == "response.reasoning_summary_text.delta":
                    yield ThinkingDeltaEvent(thinking=event.delta)

                elif etype == "response.image_generation_call.partial_image":
                    yield ImageDataEvent(
                        generation_id=event.item_id,
                        data=event.partial_image_b64,
                        mime_type=_image_mime(getattr(event, "output_format", None)),
                        partial_index=getattr(event, "partial_image_index", None),
                    )

                elif etype == "response.web_search_call.in_progress":
                    yield WebSearchEvent(status="in_progress")

                elif etype == "response.output_item.done":
                    item = event.item
                    if item.type == "image_generation_call" and getattr(item, "result", None):
                        images_generated.add(item.id)
                        yield ImageDataEvent(
                            generation_id=item.id,
                            data=item.result,
                            mime_type=_image_mime(getattr(item, "output_format", None)),
                        )
                    elif item.type == "web_search_call":
                        web_searches += 1
                        action = getattr(item, "action", None)
                        yield WebSearchEvent(
                            status="completed",
                            query=getattr(action, "query", None),
                        )

                elif etype == "response.completed":
                    response = event.response
                    usage = getattr(response, "usage", None)
                    yield MetaEvent(
                        response_id=response.id,
                        usage=self.usage_summary(
                            input_tokens=getattr(usage, "input_tokens", 0) or 0,
                            output_tokens=getattr(usage, "output_tokens", 0) or 0,
                            images_generated=len(images_generated),
                            web_searches=web_searches,
                        ),
                    )

                elif etype in ("response.failed", "error"):
                    message = _error_message(event)
                    raise UpstreamStreamError(f"OpenAI stream failed: {message}")
        finally:
            await stream.close()


def _image_mime(output_format: Any) -> str:
    return f"image/{output_format}" if output_format else "image/png"


def _error_message(event: Any) -> str:
    error = getattr(event, "error", None)
    if error is None:
        response = getattr(event, "response", None)
        error = getattr(response, "error", None)
    if error is None:
        return getattr(event, "message", None) or "unknown error"
    return getattr(error, "message", None) or str(error)

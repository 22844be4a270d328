"""OpenRouter adapter - OpenAI-compatible chat completions streaming."""

import logging
from typing import Any, AsyncGenerator, Dict, List

from ..models.chat import ImageBlock, Message, TextBlock
from ..models.events import MetaEvent, TextDeltaEvent, ThinkingDeltaEvent
from .base import AIRequestOptions, VendorAdapter, content_blocks

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterAdapter(VendorAdapter):
    """Adapter for models served through OpenRouter."""

    vendor_name = "openrouter"

    @property
    def client(self):
        """Lazy-init OpenAI client pointed at OpenRouter."""
        if self._sdk_client is None:
            import openai

            self._sdk_client = openai.AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url or DEFAULT_BASE_URL,
            )
        return self._sdk_client

    @staticmethod
    def to_chat_message(message: Message) -> Dict[str, Any]:
        """Convert a chat message to chat-completions format."""
        blocks = content_blocks(message)
        if message.role != "user":
            return {
                "role": message.role,
                "content": "\n".join(b.text for b in blocks if isinstance(b, TextBlock)),
            }
        parts: List[Dict[str, Any]] = []
        for block in blocks:
            if isinstance(block, TextBlock):
                parts.append({"type": "text", "text": block.text})
            elif isinstance(block, ImageBlock):
                parts.append({"type": "image_url", "image_url": {"url": block.url}})
        return {"role": "user", "content": parts}

    def build_params(self, options: AIRequestOptions) -> Dict[str, Any]:
        """Build keyword arguments for chat.completions.create."""
        messages = []
        if options.system_prompt:
            messages.append({"role": "system", "content": options.system_prompt})
        messages.extend(self.to_chat_message(m) for m in options.messages)

        model = options.model
        if options.has_tool("web_search") and not model.endswith(":online"):
            # OpenRouter enables its web plugin through the :online suffix
            model = f"{model}:online"

        params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if options.max_tokens:
            params["max_tokens"] = options.max_tokens
        if options.thinking_mode and options.budget_tokens:
            params["extra_body"] = {"reasoning": {"max_tokens": options.budget_tokens}}
        return params

    async def stream_response(self, options: AIRequestOptions) -> AsyncGenerator[Any, None]:
        """Stream a response, yielding text, thinking and meta events."""
        params = self.build_params(options)
        logger.debug(f"OpenRouter request: model={params['model']}")

        response_id = None
        usage = None
        stream = await self.client.chat.completions.create(**params)
        try:
            async for chunk in stream:
                response_id = response_id or getattr(chunk, "id", None)
                if getattr(chunk, "usage", None):
                    usage = chunk.usage
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                reasoning = getattr(delta, "reasoning", None)
                if reasoning:
                    yield ThinkingDeltaEvent(thinking=reasoning)
                if delta.content:
                    yield TextDeltaEvent(text=delta.content)
        finally:
            await stream.close()

        yield MetaEvent(
            response_id=response_id,
            usage=self.usage_summary(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
                web_searches=1 if options.has_tool("web_search") else 0,
            ) if usage is not None else None,
        )

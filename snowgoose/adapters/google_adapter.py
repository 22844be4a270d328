"""Google Gemini adapter - streams generate_content as Snowgoose events."""

import base64
import logging
from typing import Any, AsyncGenerator, List

from ..models.chat import ImageBlock, Message, TextBlock
from ..models.events import (
    ImageDataEvent,
    MetaEvent,
    TextDeltaEvent,
    ThinkingDeltaEvent,
    WebSearchEvent,
)
from .base import AIRequestOptions, VendorAdapter, content_blocks, guess_mime_type, parse_data_url

logger = logging.getLogger(__name__)


class GoogleAdapter(VendorAdapter):
    """Adapter for Google Gemini models via google-genai."""

    vendor_name = "google"

    @property
    def client(self):
        """Lazy-init google-genai client (only on first API call)."""
        if self._sdk_client is None:
            from google import genai

            self._sdk_client = genai.Client(api_key=self.config.api_key)
        return self._sdk_client

    @staticmethod
    def to_contents(messages: List[Message]) -> List[Any]:
        """Convert chat messages to Gemini contents."""
        from google.genai import types

        contents = []
        for msg in messages:
            if msg.role == "system":
                continue
            parts = []
            for block in content_blocks(msg):
                if isinstance(block, TextBlock):
                    parts.append(types.Part.from_text(text=block.text))
                elif isinstance(block, ImageBlock):
                    parsed = parse_data_url(block.url) if block.url.startswith("data:") else None
                    if parsed:
                        parts.append(
                            types.Part.from_bytes(data=base64.b64decode(parsed[1]), mime_type=parsed[0])
                        )
                    else:
                        parts.append(
                            types.Part.from_uri(file_uri=block.url, mime_type=guess_mime_type(block.url))
                        )
            if parts:
                role = "model" if msg.role == "assistant" else "user"
                contents.append(types.Content(role=role, parts=parts))
        return contents

    def build_config(self, options: AIRequestOptions) -> Any:
        """Build the GenerateContentConfig for a request."""
        from google.genai import types

        config = types.GenerateContentConfig()
        if options.system_prompt:
            config.system_instruction = options.system_prompt
        if options.max_tokens:
            config.max_output_tokens = options.max_tokens
        if options.thinking_mode and options.budget_tokens:
            config.thinking_config = types.ThinkingConfig(
                thinking_budget=options.budget_tokens, include_thoughts=True
            )
        if options.has_tool("web_search"):
            config.tools = [types.Tool(google_search=types.GoogleSearch())]
        if options.has_tool("image_generation"):
            config.response_modalities = ["TEXT", "IMAGE"]
        return config

    async def stream_response(self, options: AIRequestOptions) -> AsyncGenerator[Any, None]:
        """Stream a response, yielding text, thinking, image, search and meta events."""
        contents = self.to_contents(options.messages)
        config = self.build_config(options)
        logger.debug(f"Google request: model={options.model}")

        response_id = None
        usage = None
        image_count = 0
        search_queries: List[str] = []
        stream = await self.client.aio.models.generate_content_stream(
            model=options.model, contents=contents, config=config
        )
        try:
            async for chunk in stream:
                response_id = response_id or getattr(chunk, "response_id", None)
                if getattr(chunk, "usage_metadata", None):
                    usage = chunk.usage_metadata
                for candidate in chunk.candidates or []:
                    for query in _grounding_queries(candidate):
                        if query not in search_queries:
                            search_queries.append(query)
                            yield WebSearchEvent(status="completed", query=query)
                    content = getattr(candidate, "content", None)
                    for part in getattr(content, "parts", None) or []:
                        if getattr(part, "inline_data", None) and part.inline_data.data:
                            # Gemini returns each image complete, in one part
                            image_count += 1
                            yield ImageDataEvent(
                                generation_id=f"{response_id or 'gemini'}-{image_count}",
                                data=base64.b64encode(part.inline_data.data).decode("ascii"),
                                mime_type=part.inline_data.mime_type or "image/png",
                            )
                        elif part.text:
                            if getattr(part, "thought", False):
                                yield ThinkingDeltaEvent(thinking=part.text)
                            else:
                                yield TextDeltaEvent(text=part.text)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        output_tokens = 0
        if usage is not None:
            output_tokens = (usage.candidates_token_count or 0) + (
                getattr(usage, "thoughts_token_count", 0) or 0
            )
        yield MetaEvent(
            response_id=response_id,
            usage=self.usage_summary(
                input_tokens=(usage.prompt_token_count or 0) if usage is not None else 0,
                output_tokens=output_tokens,
                images_generated=image_count,
                web_searches=len(search_queries),
            ),
        )


def _grounding_queries(candidate: Any) -> List[str]:
    """Search queries Gemini actually ran for this candidate, if any."""
    metadata = getattr(candidate, "grounding_metadata", None)
    return [q for q in (getattr(metadata, "web_search_queries", None) or []) if q]

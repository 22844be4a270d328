"""Pre-flight preparation of a chat request.

Runs before the response stream opens, so every failure here becomes an
HTTP error status rather than an in-band frame.
"""

import logging
from typing import Any, Dict, List, Optional

from ..adapters.base import AIRequestOptions, parse_data_url
from ..config import settings
from ..db.repositories import APIVendorRepository, ModelRepository
from ..errors import ImageUploadError, InvalidChatRequest, ModelNotFound
from ..models.catalog import ModelConfig
from ..models.chat import ChatRequest, ImageBlock
from .storage import ObjectStorage

logger = logging.getLogger(__name__)


def find_last_image_block(chat: ChatRequest) -> Optional[int]:
    """Index of the first image block in the last message, if any."""
    last_message = chat.response_history[-1]
    if isinstance(last_message.content, str):
        return None
    for index, block in enumerate(last_message.content):
        if isinstance(block, ImageBlock):
            return index
    return None


async def attach_uploaded_image(
    chat: ChatRequest, storage: ObjectStorage, owner: Optional[str] = None
) -> Optional[str]:
    """Upload inline image data and point the last message's image block at it.

    Afterwards neither the upstream request nor stored history carries the
    inline data, only the durable URL. Returns that URL, or None when the
    request had no image data.
    """
    if not chat.image_data:
        return None

    parsed = parse_data_url(chat.image_data)
    if parsed is None:
        raise InvalidChatRequest(
            "imageData is not a base64 data URI",
            public_message="The attached image could not be read.",
        )

    index = find_last_image_block(chat)
    if index is None:
        raise InvalidChatRequest(
            "imageData was sent but the last message has no image block",
            public_message="The attached image could not be matched to a message.",
        )

    mime_type, base64_data = parsed
    try:
        url = await storage.upload(base64_data, mime_type, owner=owner)
    except ImageUploadError:
        raise
    except Exception as e:
        raise ImageUploadError(f"Pre-flight image upload failed: {e}") from e

    last_message = chat.response_history[-1]
    image_block = last_message.content[index]
    last_message.content[index] = image_block.model_copy(update={"url": url})
    chat.image_data = None
    logger.info(f"Replaced attached image with stored URL for message {len(chat.response_history) - 1}")
    return url


async def resolve_model_config(
    model_id: int, models: ModelRepository, vendors: APIVendorRepository
) -> ModelConfig:
    """Join a model and its vendor into a ModelConfig."""
    model = await models.find_by_id(model_id)
    if model is None or model.api_vendor_id is None:
        raise ModelNotFound(f"Model {model_id} or its vendor not found")

    vendor = await vendors.find_by_id(model.api_vendor_id)
    if vendor is None:
        raise ModelNotFound(f"API vendor not found for ID: {model.api_vendor_id}")

    return ModelConfig(
        api_name=model.api_name,
        vendor_name=vendor.name,
        is_vision=model.is_vision,
        is_image_generation=model.is_image_generation,
        is_thinking=model.is_thinking,
        is_web_search=model.is_web_search,
        input_token_cost=model.input_token_cost,
        output_token_cost=model.output_token_cost,
        image_output_cost=model.image_output_cost,
        web_search_cost=model.web_search_cost,
    )


def build_tools(chat: ChatRequest, config: ModelConfig) -> List[Dict[str, Any]]:
    """Tools requested by the user and supported by the model."""
    tools: List[Dict[str, Any]] = []
    if chat.use_image_generation and config.is_image_generation:
        logger.info(f"Image generation enabled for {config.api_name}")
        tools.append({"type": "image_generation", "partial_images": settings.PARTIAL_IMAGES})
    if chat.use_web_search:
        logger.info(f"Web search enabled for {config.api_name}")
        tools.append({"type": "web_search"})
    return tools


def build_request_options(chat: ChatRequest, config: ModelConfig) -> AIRequestOptions:
    """Build vendor-agnostic request options from a normalized chat request."""
    thinking_mode = bool(chat.budget_tokens and chat.budget_tokens > 0 and config.is_thinking)
    return AIRequestOptions(
        model=config.api_name,
        messages=list(chat.response_history),
        system_prompt=chat.system_prompt,
        max_tokens=chat.max_tokens,
        thinking_mode=thinking_mode,
        budget_tokens=chat.budget_tokens if thinking_mode else None,
        tools=build_tools(chat, config),
        previous_response_id=chat.previous_response_id,
    )

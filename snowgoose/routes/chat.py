"""Chat streaming route."""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncGenerator, AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..adapters.base import AIRequestOptions, VendorAdapter
from ..adapters.factory import AIVendorFactory
from ..middleware.auth import get_current_user
from ..models.catalog import ModelConfig, UserRecord
from ..models.chat import ChatRequest
from ..services.chat_setup import attach_uploaded_image, build_request_options, resolve_model_config
from ..services.container import Services, get_services
from ..services.relay import StreamRelay
from ..utils.debug_logger import (
    log_adapter_request,
    log_incoming_request,
    log_outgoing_response,
    log_stream_frame,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@dataclass
class ChatContext:
    """Everything resolved before the response stream opens."""

    request_id: str
    user: UserRecord
    model_config: ModelConfig
    options: AIRequestOptions
    adapter: VendorAdapter


def encode_frame(event: Any) -> str:
    """Serialize one event as a newline-delimited JSON frame."""
    return event.model_dump_json(by_alias=True, exclude_none=True) + "\n\n"


async def _build_chat_context(
    chat: ChatRequest,
    user: UserRecord,
    services: Services,
    request_id: str,
) -> ChatContext:
    """Run the gate and the normalizer. Any failure here is an HTTP error."""
    await services.credits.check_balance(user.id)
    services.credits.require_ratio()

    await attach_uploaded_image(chat, services.storage, owner=str(user.id))

    model_config = await resolve_model_config(chat.model_id, services.models, services.vendors)
    options = build_request_options(chat, model_config)
    adapter = AIVendorFactory.get_adapter(model_config.vendor_name, model_config)

    logger.debug(
        f"Request {request_id}: user={user.id}, model={model_config.api_name}, "
        f"vendor={model_config.vendor_name}, thinking={options.thinking_mode}, "
        f"tools={[t['type'] for t in options.tools]}"
    )

    return ChatContext(
        request_id=request_id,
        user=user,
        model_config=model_config,
        options=options,
        adapter=adapter,
    )


async def frame_stream(request_id: str, events: AsyncIterator[Any]) -> AsyncGenerator[str, None]:
    """Encode relayed events as wire frames."""
    index = 0
    try:
        async for event in events:
            frame = encode_frame(event)
            log_stream_frame(request_id, index, event.to_wire())
            index += 1
            yield frame
    finally:
        await events.aclose()
        logger.info(f"[{request_id}] Stream closed after {index} frames")


@router.post("/chat/stream")
async def chat_stream(
    chat: ChatRequest,
    req: Request,
    user: UserRecord = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Stream a model response as newline-delimited JSON events.

    Authentication, the credit check and model resolution happen before the
    response starts; their failures are returned as JSON error bodies.
    """
    request_id = f"chat-{uuid.uuid4().hex[:12]}"
    log_incoming_request(
        request_id,
        req.method,
        req.url.path,
        headers=dict(req.headers),
        body=chat.model_dump(by_alias=True, exclude_none=True),
    )

    ctx = await _build_chat_context(chat, user, services, request_id)

    log_adapter_request(
        request_id,
        ctx.model_config.vendor_name,
        ctx.options.model,
        system_prompt=ctx.options.system_prompt,
        options={
            "maxTokens": ctx.options.max_tokens,
            "thinkingMode": ctx.options.thinking_mode,
            "budgetTokens": ctx.options.budget_tokens,
            "tools": ctx.options.tools,
            "previousResponseId": ctx.options.previous_response_id,
            "messageCount": len(ctx.options.messages),
        },
    )

    relay = StreamRelay(
        user_id=user.id,
        credits=services.credits,
        storage=services.storage,
        request_id=request_id,
    )
    frames = frame_stream(request_id, relay.relay(ctx.adapter.stream_response(ctx.options)))

    log_outgoing_response(request_id, 200, is_stream=True)
    return StreamingResponse(
        frames,
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
        background=BackgroundTask(frames.aclose),
    )

"""Debug logging of chat payloads and stream frames.

Everything here is a no-op unless DEBUG_LOG_PAYLOADS is enabled. Inline
image data is masked before logging; only its length is kept.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import settings

logger = logging.getLogger("debug.payloads")

SENSITIVE_HEADERS = ("authorization", "cookie", "apikey", "x-api-key")
IMAGE_DATA_KEYS = ("imageData", "image_data", "data")
MIN_MASK_LENGTH = 64


def _truncate(text: str) -> str:
    """Cut text to DEBUG_LOG_MAX_LENGTH (0 disables)."""
    limit = settings.DEBUG_LOG_MAX_LENGTH
    if limit <= 0 or len(text) <= limit:
        return text
    return f"{text[:limit]}... [truncated, total {len(text)} chars]"


def _dump(obj: Any, indent: Optional[int] = 2) -> str:
    """JSON for logs, with images masked. Never raises."""
    try:
        return json.dumps(mask_image_data(obj), ensure_ascii=False, indent=indent, default=str)
    except (TypeError, ValueError) as e:
        return f"<serialization error: {e}>"


def _emit(title: str, request_id: str, rule: str, lines: List[str]) -> None:
    """Log a block framed by rules of ``rule`` characters."""
    bar = rule * 60
    header = f"[{datetime.now().isoformat()}] {title}: {request_id}"
    logger.info("\n".join(["", bar, header, bar, *lines, bar]))


def mask_image_data(obj: Any) -> Any:
    """Replace base64 payloads and data URLs with a size marker."""
    if isinstance(obj, dict):
        return {
            key: (
                f"<{len(value)} chars of image data>"
                if key in IMAGE_DATA_KEYS and isinstance(value, str) and len(value) > MIN_MASK_LENGTH
                else mask_image_data(value)
            )
            for key, value in obj.items()
        }
    if isinstance(obj, list):
        return [mask_image_data(item) for item in obj]
    if isinstance(obj, str) and obj.startswith("data:") and len(obj) > MIN_MASK_LENGTH:
        return f"<data url, {len(obj)} chars>"
    return obj


def log_incoming_request(
    request_id: str,
    method: str,
    path: str,
    headers: Optional[Dict[str, str]] = None,
    body: Optional[Any] = None,
) -> None:
    """Log an incoming chat request with credentials and images masked."""
    if not settings.DEBUG_LOG_PAYLOADS:
        return

    lines = [f"{method} {path}"]
    if headers:
        visible = {k: "***" if k.lower() in SENSITIVE_HEADERS else v for k, v in headers.items()}
        lines.append(f"Headers: {_dump(visible)}")
    if body is not None:
        lines.append(f"Body:\n{_truncate(_dump(body))}")
    _emit("CHAT REQUEST", request_id, "=", lines)


def log_outgoing_response(request_id: str, status_code: int, is_stream: bool = True) -> None:
    """Log the start of the response to the client."""
    if not settings.DEBUG_LOG_PAYLOADS:
        return
    _emit("RESPONSE", request_id, "-", [f"Status: {status_code}", f"Stream: {is_stream}"])


def log_stream_frame(request_id: str, frame_index: int, event: Dict[str, Any]) -> None:
    """Log one wire frame."""
    if not settings.DEBUG_LOG_PAYLOADS:
        return
    logger.debug(
        f"[{request_id}] Frame #{frame_index} ({event.get('type', 'unknown')}): "
        f"{_truncate(_dump(event, indent=None))}"
    )


def log_adapter_request(
    request_id: str,
    vendor: str,
    model: str,
    system_prompt: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None,
) -> None:
    """Log the request handed to a vendor adapter."""
    if not settings.DEBUG_LOG_PAYLOADS:
        return

    lines = [f"Vendor: {vendor}", f"Model: {model}"]
    if system_prompt:
        lines.append(f"System Prompt:\n{_truncate(system_prompt)}")
    if options:
        lines.append(f"Options:\n{_truncate(_dump(options))}")
    _emit("ADAPTER REQUEST", request_id, ">", lines)

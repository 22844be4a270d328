"""Utility modules."""

from .debug_logger import (
    log_adapter_request,
    log_incoming_request,
    log_outgoing_response,
    log_stream_frame,
    mask_image_data,
)

__all__ = [
    "log_incoming_request",
    "log_outgoing_response",
    "log_stream_frame",
    "log_adapter_request",
    "mask_image_data",
]

"""Error types raised by the chat pipeline.

Each error carries the HTTP status used when it is raised before the
response stream opens, and a message that is safe to show to the user.
Once the stream has opened, errors are reported as in-band ``error`` frames
instead and the status code is ignored.
"""

from typing import Optional


class SnowgooseError(Exception):
    """Base class for errors with a user-safe message."""

    status_code: int = 500
    public_message: str = "An internal error occurred."

    def __init__(self, message: Optional[str] = None, public_message: Optional[str] = None):
        super().__init__(message or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class Unauthorized(SnowgooseError):
    status_code = 401
    public_message = "Unauthorized: User not found."


class InsufficientCredits(SnowgooseError):
    status_code = 402
    public_message = "Insufficient credits. Please purchase more credits to continue."


class InvalidChatRequest(SnowgooseError):
    status_code = 400
    public_message = "The chat request was invalid."


class ModelNotFound(SnowgooseError):
    public_message = "Model or model vendor not found."


class UnsupportedAdapter(SnowgooseError):
    public_message = "The selected model does not support streaming."


class ConfigurationError(SnowgooseError):
    public_message = "The server is misconfigured."


class ImageUploadError(SnowgooseError):
    public_message = "Failed to upload image."


class CreditDeductionError(SnowgooseError):
    public_message = "Your usage for this message may not have been recorded."


class UpstreamStreamError(SnowgooseError):
    public_message = "An internal error occurred while generating the response."

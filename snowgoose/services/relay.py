"""Stream relay between an upstream adapter and the client.

The relay makes one pass over the adapter's event stream. Every upstream
event is forwarded in arrival order. Two kinds trigger side effects:

- ``meta`` with usage schedules the credit deduction as a task, so the
  frame is not held back by the database write. The task is awaited before
  the stream finishes.
- ``image_data`` is buffered per generation id (latest payload wins). After
  the upstream stream ends, each buffered image is uploaded and announced
  with a synthesized ``image`` event.

A successful run always ends with exactly one ``stream-complete``. If the
upstream stream fails, the relay emits one ``error`` event and stops; that
error is the terminal event and no ``stream-complete`` follows.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, AsyncGenerator, AsyncIterator, Optional

from ..errors import CreditDeductionError, ImageUploadError, UpstreamStreamError
from ..models.events import (
    ErrorEvent,
    ImageDataEvent,
    ImageEvent,
    MetaEvent,
    StreamCompleteEvent,
    TextDeltaEvent,
    ThinkingDeltaEvent,
    WebSearchEvent,
)
from .credits import CreditService
from .storage import ObjectStorage

logger = logging.getLogger(__name__)

EVENT_ERROR_MESSAGE = "Part of the response could not be processed."


@dataclass
class PendingImage:
    """Latest payload seen for one generation id."""

    data: str
    mime_type: str


class StreamRelay:
    """Relays one upstream response for one user."""

    def __init__(
        self,
        user_id: int,
        credits: CreditService,
        storage: ObjectStorage,
        request_id: str = "",
    ):
        self.user_id = user_id
        self.credits = credits
        self.storage = storage
        self.request_id = request_id
        self.usage_seen = False

    async def relay(self, upstream: AsyncIterator[Any]) -> AsyncGenerator[Any, None]:
        """Forward upstream events, then emit image and sentinel events."""
        pending: "OrderedDict[str, PendingImage]" = OrderedDict()
        deduction: Optional[asyncio.Task] = None

        try:
            try:
                async for event in upstream:
                    event_error = None
                    try:
                        task = self._inspect(event, pending)
                        if task is not None:
                            deduction = task
                    except Exception as e:
                        logger.error(
                            f"[{self.request_id}] Failed to process {type(event).__name__}: {e}",
                            exc_info=True,
                        )
                        event_error = ErrorEvent(public_message=EVENT_ERROR_MESSAGE)

                    yield event
                    if event_error is not None:
                        yield event_error

            except Exception as e:
                logger.error(f"[{self.request_id}] Upstream stream error: {e}", exc_info=True)
                billing_error = await self._settle(deduction)
                deduction = None
                if billing_error is not None:
                    yield billing_error
                yield ErrorEvent(public_message=UpstreamStreamError.public_message)
                return

            billing_error = await self._settle(deduction)
            deduction = None
            if billing_error is not None:
                yield billing_error

            async for image_event in self._upload_pending(pending):
                yield image_event

            yield StreamCompleteEvent()

        finally:
            # Only reached with a live task when the client went away mid-stream
            try:
                if deduction is not None:
                    await self._settle(deduction, shielded=True)
            finally:
                await _close_upstream(upstream)
                pending.clear()

    def _inspect(
        self, event: Any, pending: "OrderedDict[str, PendingImage]"
    ) -> Optional[asyncio.Task]:
        """Record side effects for one event. Returns a new deduction task, if any."""
        if isinstance(event, MetaEvent):
            if event.usage is None:
                return None
            if self.usage_seen:
                logger.warning(f"[{self.request_id}] Ignoring repeated usage report")
                return None
            self.usage_seen = True
            amount = self.credits.credits_for_usage(event.usage)
            if amount <= 0:
                return None
            return asyncio.create_task(self._deduct(amount))

        elif isinstance(event, ImageDataEvent):
            if event.generation_id:
                pending[event.generation_id] = PendingImage(
                    data=event.data, mime_type=event.mime_type
                )

        elif isinstance(event, (TextDeltaEvent, ThinkingDeltaEvent, WebSearchEvent, ErrorEvent)):
            pass

        else:
            logger.debug(f"[{self.request_id}] Forwarding unrecognized event {type(event).__name__}")

        return None

    async def _deduct(self, amount: float) -> float:
        source = f"chat:{self.request_id}" if self.request_id else "chat"
        return await self.credits.deduct(self.user_id, amount, source)

    async def _settle(
        self, deduction: Optional[asyncio.Task], shielded: bool = False
    ) -> Optional[ErrorEvent]:
        """Wait for the deduction task; turn its failure into an error event."""
        if deduction is None:
            return None
        try:
            if shielded:
                await asyncio.shield(deduction)
            else:
                await deduction
        except Exception as e:
            logger.error(f"[{self.request_id}] Credit deduction failed: {e}", exc_info=True)
            return ErrorEvent(public_message=CreditDeductionError.public_message)
        return None

    async def _upload_pending(
        self, pending: "OrderedDict[str, PendingImage]"
    ) -> AsyncGenerator[Any, None]:
        """Upload buffered images one by one; each id fails independently."""
        for generation_id, image in pending.items():
            try:
                url = await self.storage.upload(image.data, image.mime_type, owner=str(self.user_id))
            except Exception as e:
                logger.error(
                    f"[{self.request_id}] Image upload failed for {generation_id}: {e}",
                    exc_info=True,
                )
                yield ErrorEvent(
                    public_message=ImageUploadError.public_message,
                    generation_id=generation_id,
                )
                continue
            logger.info(f"[{self.request_id}] Uploaded generated image {generation_id}")
            yield ImageEvent(url=url, generation_id=generation_id)


async def _close_upstream(upstream: Any) -> None:
    """Close the upstream generator so its connection is released."""
    aclose = getattr(upstream, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as e:
        logger.debug(f"Error closing upstream stream: {e}")

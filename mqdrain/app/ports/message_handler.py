"""Ports: per-message handling and the injected business logic it delegates to."""
from __future__ import annotations

from typing import Protocol

from mqdrain.app.constants import ProcessingResult
from mqdrain.app.domain.models import QueueMessage


class MessageProcessingError(Exception):
    """Retryable failure while processing a message; the delivery is rolled back."""


class BusinessLogic(Protocol):
    """Port: the work applied to one message. Raise MessageProcessingError (or any error) to retry."""

    async def process(self, message: QueueMessage) -> None: ...


class MessageHandler(Protocol):
    """Port used by the drain loop.

    Returns SUCCESS or DISCARDED when the delivery should be committed; raises
    on a retryable failure.
    """

    async def handle(self, message: QueueMessage) -> ProcessingResult: ...

"""Message handler: applies the poison-message policy around injected business logic.

Domain depends only on ports. The handler never commits or rolls back; it reports
an outcome and the drain loop owns the transaction.
"""
from __future__ import annotations

from typing import Any

from loguru import logger

from mqdrain.app.constants import POISON_MESSAGE_MARKER, MessageState, ProcessingResult
from mqdrain.app.core import SERVICE_NAME
from mqdrain.app.domain.models import QueueMessage
from mqdrain.app.domain.poison_policy import PoisonMessagePolicy
from mqdrain.app.ports.message_handler import BusinessLogic, MessageProcessingError


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class SimulatedFailureError(MessageProcessingError):
    """Raised by SampleBusinessLogic when a message carries the poison marker."""


class SampleBusinessLogic:
    """Placeholder business logic: logs the message, fails on the poison marker."""

    def __init__(self, poison_marker: str = POISON_MESSAGE_MARKER) -> None:
        self._poison_marker = poison_marker

    async def process(self, message: QueueMessage) -> None:
        if self._poison_marker and self._poison_marker in message.text:
            raise SimulatedFailureError("Simulated failure triggered!")
        _log("message_processed", message_id=message.message_id, text=message.text)


class PoisonAwareMessageHandler:
    """
    Runs business logic for ACTIVE deliveries and discards QUARANTINED ones.

    ACTIVE (delivery_count < threshold): business logic runs; any exception it
    raises propagates so the caller rolls back and the broker redelivers.
    QUARANTINED (delivery_count >= threshold): nothing runs, a warning is logged
    and DISCARDED is returned so the caller commits. Nothing is dead-lettered.
    """

    def __init__(self, business_logic: BusinessLogic, policy: PoisonMessagePolicy | None = None) -> None:
        self._business_logic = business_logic
        self._policy = policy or PoisonMessagePolicy()

    @property
    def policy(self) -> PoisonMessagePolicy:
        return self._policy

    async def handle(self, message: QueueMessage) -> ProcessingResult:
        if message.delivery_count > 1:
            logger.warning(
                "message {} has previously failed processing {} times",
                message.message_id,
                message.previous_failures,
            )

        if self._policy.classify(message) is MessageState.QUARANTINED:
            logger.warning(
                "discarding poison message {} after {} deliveries text={}",
                message.message_id,
                message.delivery_count,
                message.text,
            )
            _log(
                "message_discarded",
                message_id=message.message_id,
                delivery_count=message.delivery_count,
                threshold=self._policy.threshold,
            )
            return ProcessingResult.DISCARDED

        await self._business_logic.process(message)
        return ProcessingResult.SUCCESS

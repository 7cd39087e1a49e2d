"""Bounded-retry-then-discard policy keyed by delivery count."""
from __future__ import annotations

from mqdrain.app.constants import POISON_DELIVERY_THRESHOLD, MessageState
from mqdrain.app.domain.models import QueueMessage


class PoisonMessagePolicy:
    """
    Classifies a delivery as ACTIVE or QUARANTINED.

    The threshold counts delivery attempts, not elapsed time. With threshold=3,
    deliveries 1 and 2 are processed; the third and later are discarded.
    """

    def __init__(self, threshold: int = POISON_DELIVERY_THRESHOLD) -> None:
        if threshold < 1:
            raise ValueError("poison threshold must be >= 1")
        self._threshold = int(threshold)

    @property
    def threshold(self) -> int:
        return self._threshold

    def classify(self, message: QueueMessage) -> MessageState:
        if message.delivery_count < self._threshold:
            return MessageState.ACTIVE
        return MessageState.QUARANTINED

"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class QueueMessage:
    """A delivered text message as observed by the drain loop (value object).

    delivery_count is 1 on first delivery and grows by one on each redelivery
    after a rollback. The broker owns it; nothing here changes it.
    """

    message_id: str
    text: str
    delivery_count: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError("message.text must be a str")
        if not isinstance(self.delivery_count, int) or self.delivery_count < 1:
            raise ValueError("message.delivery_count must be an int >= 1")

    @property
    def previous_failures(self) -> int:
        return self.delivery_count - 1

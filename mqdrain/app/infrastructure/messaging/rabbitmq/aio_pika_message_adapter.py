"""Adapter: turn aio_pika.IncomingMessage into the domain QueueMessage."""
from __future__ import annotations

from aio_pika.abc import AbstractIncomingMessage

from mqdrain.app.domain.models import QueueMessage
from mqdrain.app.infrastructure.messaging.rabbitmq.constants import DELIVERY_COUNT_HEADER


def delivery_count_of(message: AbstractIncomingMessage) -> int:
    """1-based delivery count.

    Quorum queues report earlier deliveries in x-delivery-count. Classic queues only
    say whether the message was redelivered, so the best we know there is 2.
    """
    headers = message.headers or {}
    previous = headers.get(DELIVERY_COUNT_HEADER)
    if previous is not None:
        return int(previous) + 1
    return 2 if message.redelivered else 1


def to_queue_message(message: AbstractIncomingMessage) -> QueueMessage:
    message_id = message.message_id or f"delivery-{message.delivery_tag}"
    return QueueMessage(
        message_id=str(message_id),
        text=message.body.decode("utf-8", errors="replace"),
        delivery_count=delivery_count_of(message),
    )

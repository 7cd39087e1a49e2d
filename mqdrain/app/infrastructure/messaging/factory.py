"""Queue connection factory: selects implementation from config. Only place that imports concrete connections."""
from __future__ import annotations

from mqdrain.app.config.parameters import ActionParameters
from mqdrain.app.config.settings import Settings
from mqdrain.app.infrastructure.messaging.inmemory.in_memory_broker import (
    InMemoryBroker,
    InMemoryConnection,
    default_broker,
)
from mqdrain.app.infrastructure.messaging.rabbitmq.rabbitmq_connection import RabbitMQConnection
from mqdrain.app.ports.transactional_session import QueueConnection


def create_queue_connection(
    settings: Settings,
    params: ActionParameters,
    *,
    broker: InMemoryBroker | None = None,
) -> QueueConnection:
    backend = settings.consumer_backend.strip().lower()

    if backend == "rabbitmq":
        return RabbitMQConnection(settings, params)

    if backend == "inmemory":
        return InMemoryConnection(broker or default_broker(), params.queue_name)

    raise ValueError(f"Unsupported consumer backend: {backend}")

"""In-memory broker for local simulation and tests.

Behaves like a transactional queue manager: received messages and sent messages
stay pending until commit; a rollback puts received messages back at the head of
the queue and the next delivery carries an incremented delivery count.
"""
from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass
from typing import Any

from loguru import logger

from mqdrain.app.core import SERVICE_NAME
from mqdrain.app.domain.models import QueueMessage
from mqdrain.app.ports.transactional_session import QueueTransportError, TransactionalSession


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@dataclass
class StoredMessage:
    message_id: str
    text: str
    deliveries: int = 0


class InMemoryBroker:
    """Named FIFO queues shared by every connection created against this broker."""

    def __init__(self) -> None:
        self._queues: dict[str, deque[StoredMessage]] = {}

    def queue(self, name: str) -> deque[StoredMessage]:
        return self._queues.setdefault(name, deque())

    def put(self, queue_name: str, text: str, *, deliveries: int = 0) -> str:
        """Enqueue a message directly (already committed). deliveries counts earlier deliveries."""
        stored = StoredMessage(message_id=uuid.uuid4().hex, text=text, deliveries=deliveries)
        self.queue(queue_name).append(stored)
        return stored.message_id

    def depth(self, queue_name: str) -> int:
        return len(self.queue(queue_name))

    def texts(self, queue_name: str) -> list[str]:
        return [stored.text for stored in self.queue(queue_name)]

    def clear(self) -> None:
        self._queues.clear()


_default_broker = InMemoryBroker()


def default_broker() -> InMemoryBroker:
    """Process-wide broker used when none is injected."""
    return _default_broker


class InMemorySession:
    """TransactionalSession over one InMemoryBroker queue."""

    def __init__(self, broker: InMemoryBroker, queue_name: str) -> None:
        self._broker = broker
        self._queue_name = queue_name
        self._received: list[StoredMessage] = []
        self._sent: list[StoredMessage] = []
        self._closed = False
        self.commit_count = 0
        self.rollback_count = 0

    def _check_open(self) -> None:
        if self._closed:
            raise QueueTransportError("session is closed")

    async def receive_no_wait(self) -> QueueMessage | None:
        self._check_open()
        queue = self._broker.queue(self._queue_name)
        if not queue:
            return None
        stored = queue.popleft()
        stored.deliveries += 1
        self._received.append(stored)
        return QueueMessage(
            message_id=stored.message_id,
            text=stored.text,
            delivery_count=stored.deliveries,
        )

    async def send(self, text: str) -> None:
        self._check_open()
        self._sent.append(StoredMessage(message_id=uuid.uuid4().hex, text=text))

    async def commit(self) -> None:
        self._check_open()
        self._broker.queue(self._queue_name).extend(self._sent)
        self._sent = []
        self._received = []
        self.commit_count += 1

    async def rollback(self) -> None:
        self._check_open()
        queue = self._broker.queue(self._queue_name)
        queue.extendleft(reversed(self._received))
        self._received = []
        self._sent = []
        self.rollback_count += 1

    async def close(self) -> None:
        if self._closed:
            return
        if self._received or self._sent:
            await self.rollback()
        self._closed = True


class InMemoryConnection:
    """QueueConnection implementation backed by an InMemoryBroker."""

    def __init__(self, broker: InMemoryBroker, queue_name: str) -> None:
        self._broker = broker
        self._queue_name = queue_name
        self._session: InMemorySession | None = None

    @property
    def session(self) -> TransactionalSession:
        if self._session is None:
            raise RuntimeError("connection not ready")
        return self._session

    async def connect(self) -> None:
        self._broker.queue(self._queue_name)
        self._session = InMemorySession(self._broker, self._queue_name)
        _log("inmemory_connected", queue=self._queue_name)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

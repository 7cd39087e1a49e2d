from __future__ import annotations

from collections import deque
from typing import Any, Iterable

import pytest
from loguru import logger

from mqdrain.app.config.settings import Settings
from mqdrain.app.constants import ProcessingResult
from mqdrain.app.domain.models import QueueMessage
from mqdrain.app.infrastructure.messaging.inmemory.in_memory_broker import InMemoryBroker


class FakeSession:
    """Implements TransactionalSession for tests; records every call in order."""

    def __init__(self, messages: Iterable[QueueMessage] = ()) -> None:
        self._messages = deque(messages)
        self.calls: list[str] = []
        self.sent: list[str] = []

    @property
    def commit_count(self) -> int:
        return self.calls.count("commit")

    @property
    def rollback_count(self) -> int:
        return self.calls.count("rollback")

    async def receive_no_wait(self) -> QueueMessage | None:
        self.calls.append("receive")
        if not self._messages:
            return None
        return self._messages.popleft()

    async def send(self, text: str) -> None:
        self.calls.append("send")
        self.sent.append(text)

    async def commit(self) -> None:
        self.calls.append("commit")

    async def rollback(self) -> None:
        self.calls.append("rollback")


class FakeHandler:
    """Implements MessageHandler. outcomes maps message_id to a result or an exception to raise."""

    def __init__(self, outcomes: dict[str, ProcessingResult | Exception] | None = None) -> None:
        self._outcomes = outcomes or {}
        self.handled: list[str] = []

    async def handle(self, message: QueueMessage) -> ProcessingResult:
        self.handled.append(message.message_id)
        outcome = self._outcomes.get(message.message_id, ProcessingResult.SUCCESS)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingBusinessLogic:
    """Implements BusinessLogic; optionally fails for bodies containing fail_on."""

    def __init__(self, fail_on: str | None = None) -> None:
        self._fail_on = fail_on
        self.processed: list[QueueMessage] = []

    async def process(self, message: QueueMessage) -> None:
        if self._fail_on is not None and self._fail_on in message.text:
            raise RuntimeError(f"cannot process {message.message_id}")
        self.processed.append(message)


def make_message(message_id: str, text: str = "hello", delivery_count: int = 1) -> QueueMessage:
    return QueueMessage(message_id=message_id, text=text, delivery_count=delivery_count)


VALID_PARAMS: dict[str, Any] = {
    "queueName": "DEV.QUEUE.1",
    "username": "app",
    "password": "passw0rd",
    "qmgrChannelName": "DEV.APP.SVRCONN",
    "qmgrName": "QM1",
    "qmgrPort": 5672,
    "qmgrHostName": "localhost",
}


@pytest.fixture()
def params() -> dict[str, Any]:
    return dict(VALID_PARAMS)


@pytest.fixture()
def broker() -> InMemoryBroker:
    return InMemoryBroker()


@pytest.fixture()
def inmemory_settings() -> Settings:
    return Settings(CONSUMER_BACKEND="inmemory")


@pytest.fixture()
def log_records():
    """Capture loguru records emitted during the test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)

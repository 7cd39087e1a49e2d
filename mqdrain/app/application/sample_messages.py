"""Puts sample messages on the queue so the action has something to read.

In real deployments a separate application produces the messages.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from loguru import logger

from mqdrain.app.core import SERVICE_NAME
from mqdrain.app.ports.transactional_session import TransactionalSession


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def sample_message_text(index: int, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return f"SampleMessage{index}: {stamp}"


async def put_test_messages(session: TransactionalSession, count: int) -> int:
    """Send `count` sample messages in one transaction and commit it."""
    if count < 0:
        raise ValueError("count must be >= 0")
    for index in range(1, count + 1):
        await session.send(sample_message_text(index))
    await session.commit()
    _log("test_messages_sent", count=count)
    return count

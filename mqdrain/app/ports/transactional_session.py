"""Port: transactional session over one queue, and the connection that owns it.

Implementations live in infrastructure. The application uses these protocols only.
"""
from __future__ import annotations

from typing import Protocol

from mqdrain.app.domain.models import QueueMessage


class QueueTransportError(Exception):
    """Broker-level failure (connect, declare, receive, send, commit, rollback)."""


class TransactionalSession(Protocol):
    """
    One unit of work at a time. Received messages and sent messages stay pending
    until commit() (removed / made visible) or rollback() (returned for redelivery /
    dropped). Not safe for concurrent use.
    """

    async def receive_no_wait(self) -> QueueMessage | None:
        """Return the next available message or None without waiting."""
        ...

    async def send(self, text: str) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class QueueConnection(Protocol):
    async def connect(self) -> None: ...

    @property
    def session(self) -> TransactionalSession: ...

    async def close(self) -> None:
        """Release the connection. Safe to call when connect() failed part-way."""
        ...

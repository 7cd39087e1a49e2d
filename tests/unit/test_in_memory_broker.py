"""Unit tests for the in-memory transactional broker."""
from __future__ import annotations

import pytest

from mqdrain.app.infrastructure.messaging.inmemory.in_memory_broker import InMemoryConnection, InMemorySession
from mqdrain.app.ports.transactional_session import QueueTransportError


@pytest.mark.asyncio
async def test_receive_no_wait_returns_none_on_empty_queue(broker):
    session = InMemorySession(broker, "Q")
    assert await session.receive_no_wait() is None


@pytest.mark.asyncio
async def test_first_delivery_has_count_one(broker):
    message_id = broker.put("Q", "hello")
    session = InMemorySession(broker, "Q")

    message = await session.receive_no_wait()

    assert message is not None
    assert message.message_id == message_id
    assert message.text == "hello"
    assert message.delivery_count == 1


@pytest.mark.asyncio
async def test_commit_removes_received_message(broker):
    broker.put("Q", "hello")
    session = InMemorySession(broker, "Q")

    await session.receive_no_wait()
    await session.commit()

    assert broker.depth("Q") == 0


@pytest.mark.asyncio
async def test_rollback_returns_message_to_head_with_incremented_count(broker):
    broker.put("Q", "a")
    broker.put("Q", "b")
    session = InMemorySession(broker, "Q")

    first = await session.receive_no_wait()
    await session.rollback()
    again = await session.receive_no_wait()

    assert again is not None and first is not None
    assert again.message_id == first.message_id
    assert again.delivery_count == 2


@pytest.mark.asyncio
async def test_sent_messages_are_invisible_until_commit(broker):
    session = InMemorySession(broker, "Q")

    await session.send("one")
    await session.send("two")
    assert broker.depth("Q") == 0

    await session.commit()
    assert broker.texts("Q") == ["one", "two"]


@pytest.mark.asyncio
async def test_rollback_drops_sent_messages(broker):
    session = InMemorySession(broker, "Q")

    await session.send("one")
    await session.rollback()

    assert broker.depth("Q") == 0


@pytest.mark.asyncio
async def test_connection_close_rolls_back_uncommitted_receive(broker):
    broker.put("Q", "hello")
    connection = InMemoryConnection(broker, "Q")
    await connection.connect()

    await connection.session.receive_no_wait()
    await connection.close()

    assert broker.texts("Q") == ["hello"]
    assert broker.queue("Q")[0].deliveries == 1


@pytest.mark.asyncio
async def test_closed_session_raises_transport_error(broker):
    session = InMemorySession(broker, "Q")
    await session.close()

    with pytest.raises(QueueTransportError):
        await session.receive_no_wait()


def test_session_unavailable_before_connect(broker):
    with pytest.raises(RuntimeError):
        InMemoryConnection(broker, "Q").session

"""
RabbitMQ connection with a single transactional channel for the drain action.

Lifecycle:
  DISCONNECTED -> CONNECTING (backoff) -> CONNECTED -> CHANNEL_OPEN ->
  QUEUE_DECLARED -> READY (tx.select issued).
  close(): any state -> CLOSING -> close channel/connection -> CLOSED.

There is no reconnect loop. One invocation is one connection; if the broker goes
away mid-batch the invocation fails and unacked deliveries return to the queue.

Transactions:
  Acks and publishes are only applied on tx.commit. A rollback discards them but
  does not return received messages to the queue, so RabbitMQSession.rollback()
  nacks the pending deliveries with requeue and commits that nack.
"""
from __future__ import annotations

import uuid
from typing import Any
from urllib.parse import quote

import aio_pika
from aio_pika.abc import (
    AbstractChannel,
    AbstractConnection,
    AbstractExchange,
    AbstractIncomingMessage,
    AbstractQueue,
    AbstractTransaction,
)
from aio_pika.exceptions import AMQPError
from loguru import logger

from mqdrain.app.config.parameters import ActionParameters
from mqdrain.app.config.settings import Settings
from mqdrain.app.core import SERVICE_NAME
from mqdrain.app.core.backoff import exponential_backoff
from mqdrain.app.domain.models import QueueMessage
from mqdrain.app.infrastructure.messaging.rabbitmq.aio_pika_message_adapter import to_queue_message
from mqdrain.app.infrastructure.messaging.rabbitmq.constants import (
    QUEUE_TYPE_ARGUMENT,
    ConnectionState,
)
from mqdrain.app.ports.transactional_session import QueueTransportError, TransactionalSession


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class RabbitMQSession:
    """TransactionalSession over one tx-mode channel and one queue."""

    def __init__(
        self,
        queue: AbstractQueue,
        exchange: AbstractExchange,
        transaction: AbstractTransaction,
    ) -> None:
        self._queue = queue
        self._exchange = exchange
        self._transaction = transaction
        self._pending: list[AbstractIncomingMessage] = []

    async def receive_no_wait(self) -> QueueMessage | None:
        try:
            incoming = await self._queue.get(no_ack=False, fail=False)
        except AMQPError as exc:
            raise QueueTransportError(f"receive from {self._queue.name} failed: {exc}") from exc
        if incoming is None:
            return None
        self._pending.append(incoming)
        return to_queue_message(incoming)

    async def send(self, text: str) -> None:
        message = aio_pika.Message(
            body=text.encode("utf-8"),
            content_type="text/plain",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            message_id=uuid.uuid4().hex,
        )
        try:
            await self._exchange.publish(message, routing_key=self._queue.name)
        except AMQPError as exc:
            raise QueueTransportError(f"send to {self._queue.name} failed: {exc}") from exc

    async def commit(self) -> None:
        pending, self._pending = self._pending, []
        try:
            for incoming in pending:
                await incoming.ack()
            await self._transaction.commit()
        except AMQPError as exc:
            raise QueueTransportError(f"commit failed: {exc}") from exc

    async def rollback(self) -> None:
        pending, self._pending = self._pending, []
        try:
            await self._transaction.rollback()
            if not pending:
                return
            for incoming in pending:
                await incoming.nack(requeue=True)
            await self._transaction.commit()
        except AMQPError as exc:
            raise QueueTransportError(f"rollback failed: {exc}") from exc


class RabbitMQConnection:
    """QueueConnection implementation"""

    def __init__(self, settings: Settings, params: ActionParameters) -> None:
        self._settings = settings
        self._params = params
        self._state = ConnectionState.DISCONNECTED
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._session: RabbitMQSession | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def session(self) -> TransactionalSession:
        if self._session is None:
            raise RuntimeError("connection not ready")
        return self._session

    def _set_state(self, state: ConnectionState) -> None:
        self._state = state

    def _build_amqp_url(self) -> str:
        user = quote(self._params.username, safe="")
        password = quote(self._params.password, safe="")
        vhost = quote(self._params.qmgr_name, safe="")
        return (
            f"amqp://{user}:{password}"
            f"@{self._params.qmgr_host_name}:{self._params.qmgr_port}/{vhost}"
        )

    def _queue_arguments(self) -> dict[str, Any]:
        queue_type = self._settings.queue_type.strip().lower()
        if not queue_type:
            return {}
        return {QUEUE_TYPE_ARGUMENT: queue_type}

    async def connect(self) -> None:
        self._set_state(ConnectionState.CONNECTING)
        _log(
            "rmq_connecting",
            host=self._params.qmgr_host_name,
            port=self._params.qmgr_port,
            vhost=self._params.qmgr_name,
        )
        attempt = 0
        async for delay in exponential_backoff(
            self._settings.initial_backoff_seconds,
            self._settings.max_backoff_seconds,
            self._settings.backoff_multiplier,
            self._settings.max_connection_attempts,
        ):
            attempt += 1
            _log("rmq_connect_attempt", attempt=attempt, delay=delay)
            try:
                self._connection = await aio_pika.connect(
                    self._build_amqp_url(),
                    timeout=self._settings.connection_timeout_seconds,
                    client_properties={"connection_name": self._params.qmgr_channel_name},
                )
                break
            except Exception as exc:
                logger.warning("rmq connect failed: {}", exc)
                if attempt >= self._settings.max_connection_attempts:
                    _log("rmq_connect_failed", attempt=attempt)
                    self._set_state(ConnectionState.DISCONNECTED)
                    raise QueueTransportError(f"could not connect to broker: {exc}") from exc
        self._set_state(ConnectionState.CONNECTED)
        _log("rmq_connected")
        try:
            await self._open_channel_and_declare()
        except AMQPError as exc:
            raise QueueTransportError(f"session setup failed: {exc}") from exc

    async def _open_channel_and_declare(self) -> None:
        if self._connection is None:
            raise RuntimeError("connection not established")
        # Transactions and publisher confirms are mutually exclusive on a channel.
        self._channel = await self._connection.channel(publisher_confirms=False)
        self._set_state(ConnectionState.CHANNEL_OPEN)
        queue = await self._channel.declare_queue(
            self._params.queue_name,
            durable=self._settings.queue_durable,
            arguments=self._queue_arguments(),
        )
        self._set_state(ConnectionState.QUEUE_DECLARED)
        transaction = self._channel.transaction()
        await transaction.select()
        self._session = RabbitMQSession(queue, self._channel.default_exchange, transaction)
        self._set_state(ConnectionState.READY)
        _log("rmq_session_ready", queue=self._params.queue_name)

    async def close(self) -> None:
        self._set_state(ConnectionState.CLOSING)
        self._session = None
        if self._channel is not None:
            try:
                await self._channel.close()
            except Exception as exc:
                logger.warning("channel close failed (continuing to close connection): {}", exc)
            self._channel = None
        if self._connection is not None:
            try:
                await self._connection.close()
            except Exception as exc:
                logger.warning("connection close failed: {}", exc)
            self._connection = None
        self._set_state(ConnectionState.CLOSED)
        _log("rmq_closed")

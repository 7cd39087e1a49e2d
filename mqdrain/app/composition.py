"""Action composition root: build and lifecycle-manage concrete dependencies.

Composition may: import concrete classes, call factories, store interface types,
manage high-level lifecycle.
"""
from __future__ import annotations

from loguru import logger

from mqdrain.app.application.drain_service import DrainService
from mqdrain.app.config.parameters import ActionParameters
from mqdrain.app.config.settings import Settings
from mqdrain.app.domain.message_handler import PoisonAwareMessageHandler, SampleBusinessLogic
from mqdrain.app.domain.poison_policy import PoisonMessagePolicy
from mqdrain.app.infrastructure.messaging.factory import create_queue_connection
from mqdrain.app.infrastructure.messaging.inmemory.in_memory_broker import InMemoryBroker
from mqdrain.app.ports.message_handler import BusinessLogic, MessageHandler
from mqdrain.app.ports.transactional_session import QueueConnection, TransactionalSession


class ActionDependencies:
    """Holds wired action dependencies and their lifecycle."""

    def __init__(
        self,
        *,
        settings: Settings,
        params: ActionParameters,
        business_logic: BusinessLogic | None = None,
        broker: InMemoryBroker | None = None,
    ) -> None:
        self._settings = settings
        self._params = params
        self._business_logic = business_logic
        self._broker = broker
        self._connection: QueueConnection | None = None
        self._handler: MessageHandler | None = None
        self._drain_service: DrainService | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def session(self) -> TransactionalSession:
        if self._connection is None:
            raise RuntimeError("connection is not initialized")
        return self._connection.session

    @property
    def drain_service(self) -> DrainService:
        if self._drain_service is None:
            raise RuntimeError("drain_service is not initialized")
        return self._drain_service

    async def connect(self) -> None:
        # Stored before connect() so close() can release a half-open connection.
        self._connection = create_queue_connection(self._settings, self._params, broker=self._broker)
        await self._connection.connect()

        business_logic = self._business_logic or SampleBusinessLogic(self._settings.poison_message_marker)
        self._handler = PoisonAwareMessageHandler(
            business_logic,
            PoisonMessagePolicy(self._settings.poison_delivery_threshold),
        )
        self._drain_service = DrainService(self._connection.session, self._handler)

    async def close(self) -> None:
        """Close the connection; failures here are logged and not raised."""
        if self._connection is not None:
            try:
                await self._connection.close()
            except Exception as exc:
                logger.warning("queue connection close failed: {}", exc)
            self._connection = None
        self._handler = None
        self._drain_service = None


def create_action_dependencies(
    params: ActionParameters,
    settings: Settings | None = None,
    *,
    business_logic: BusinessLogic | None = None,
    broker: InMemoryBroker | None = None,
) -> ActionDependencies:
    return ActionDependencies(
        settings=settings or Settings(),
        params=params,
        business_logic=business_logic,
        broker=broker,
    )

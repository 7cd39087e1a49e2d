"""Serverless action: drain the configured queue once and report how many messages were processed.

The function platform calls main(params) with a JSON object and expects a JSON
object back: {"messagesProcessed": n} on success, {"error": "..."} on failure.
"""
from __future__ import annotations

import asyncio
from typing import Any, Mapping

from loguru import logger

from mqdrain.app.application.sample_messages import put_test_messages
from mqdrain.app.composition import create_action_dependencies
from mqdrain.app.config.parameters import ActionParameters, MissingParameterError
from mqdrain.app.config.settings import Settings
from mqdrain.app.constants import RETURN_ERROR, RETURN_MESSAGES_PROCESSED
from mqdrain.app.core import SERVICE_NAME
from mqdrain.app.infrastructure.messaging.inmemory.in_memory_broker import InMemoryBroker
from mqdrain.app.ports.message_handler import BusinessLogic


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def run_action(
    params: Mapping[str, Any],
    settings: Settings | None = None,
    *,
    business_logic: BusinessLogic | None = None,
    broker: InMemoryBroker | None = None,
) -> dict[str, Any]:
    """Validate params, connect, optionally seed test messages, drain, and always close.

    Raises on any failure; main() turns failures into an error result.
    """
    action_params = ActionParameters.from_params(params)
    deps = create_action_dependencies(
        action_params,
        settings,
        business_logic=business_logic,
        broker=broker,
    )
    _log("action_started", queue=action_params.queue_name)
    try:
        await deps.connect()
        if action_params.num_test_messages is not None:
            await put_test_messages(deps.session, action_params.num_test_messages)
        processed = await deps.drain_service.drain()
    finally:
        await deps.close()

    _log("action_finished", queue=action_params.queue_name, processed=processed)
    return {RETURN_MESSAGES_PROCESSED: processed}


def main(
    params: Mapping[str, Any],
    settings: Settings | None = None,
    *,
    business_logic: BusinessLogic | None = None,
    broker: InMemoryBroker | None = None,
) -> dict[str, Any]:
    """Function platform entry point."""
    try:
        return asyncio.run(
            run_action(params, settings, business_logic=business_logic, broker=broker)
        )
    except MissingParameterError as exc:
        logger.error("action configuration error: {}", exc)
        return {RETURN_ERROR: str(exc)}
    except Exception as exc:
        logger.exception("action failed: {}", exc)
        return {RETURN_ERROR: str(exc)}

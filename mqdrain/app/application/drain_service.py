from __future__ import annotations

from typing import Any

from loguru import logger

from mqdrain.app.constants import ProcessingResult
from mqdrain.app.core import SERVICE_NAME
from mqdrain.app.ports.message_handler import MessageHandler
from mqdrain.app.ports.transactional_session import TransactionalSession


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class DrainService:
    """
    Drains every message currently available on a transactional session.

    Per message: receive without waiting, hand to the handler, then commit on
    SUCCESS/DISCARDED or roll back on failure. Each commit/rollback covers only
    the current message, so a rollback never undoes earlier commits in the batch.
    The first failure rolls back and re-raises; the remaining messages are left
    for the next invocation.
    """

    def __init__(self, session: TransactionalSession, handler: MessageHandler) -> None:
        self._session = session
        self._handler = handler

    async def drain(self) -> int:
        processed = 0
        discarded = 0
        while True:
            message = await self._session.receive_no_wait()
            if message is None:
                break

            _log(
                "message_received",
                message_id=message.message_id,
                delivery_count=message.delivery_count,
            )
            try:
                result = await self._handler.handle(message)
            except Exception as exc:
                logger.warning("processing failed for message {}, rolling back: {}", message.message_id, exc)
                await self._session.rollback()
                _log(
                    "message_rolled_back",
                    message_id=message.message_id,
                    result=ProcessingResult.FAILURE.value,
                    delivery_count=message.delivery_count,
                    processed=processed,
                    error=str(exc),
                )
                raise

            await self._session.commit()
            processed += 1
            if result is ProcessingResult.DISCARDED:
                discarded += 1
            _log("message_committed", message_id=message.message_id, result=result.value)

        _log("queue_drained", processed=processed, discarded=discarded)
        return processed

"""Unit tests for the poison-message policy and PoisonAwareMessageHandler."""
from __future__ import annotations

import pytest

from mqdrain.app.constants import POISON_DELIVERY_THRESHOLD, MessageState, ProcessingResult
from mqdrain.app.domain.message_handler import (
    PoisonAwareMessageHandler,
    SampleBusinessLogic,
    SimulatedFailureError,
)
from mqdrain.app.domain.poison_policy import PoisonMessagePolicy
from mqdrain.app.ports.message_handler import MessageProcessingError
from tests.conftest import RecordingBusinessLogic, make_message


def test_default_threshold_is_three():
    assert POISON_DELIVERY_THRESHOLD == 3
    assert PoisonMessagePolicy().threshold == 3


@pytest.mark.parametrize(
    ("delivery_count", "expected"),
    [
        (1, MessageState.ACTIVE),
        (2, MessageState.ACTIVE),
        (3, MessageState.QUARANTINED),
        (7, MessageState.QUARANTINED),
    ],
)
def test_policy_classifies_by_delivery_count(delivery_count, expected):
    policy = PoisonMessagePolicy()
    assert policy.classify(make_message("m", delivery_count=delivery_count)) is expected


def test_policy_rejects_threshold_below_one():
    with pytest.raises(ValueError):
        PoisonMessagePolicy(0)


@pytest.mark.asyncio
async def test_active_message_runs_business_logic_and_succeeds():
    logic = RecordingBusinessLogic()
    handler = PoisonAwareMessageHandler(logic)
    message = make_message("m1", "order 42")

    assert await handler.handle(message) is ProcessingResult.SUCCESS
    assert logic.processed == [message]


@pytest.mark.asyncio
async def test_active_poison_content_raises_retryable_failure():
    handler = PoisonAwareMessageHandler(SampleBusinessLogic())

    with pytest.raises(SimulatedFailureError) as exc_info:
        await handler.handle(make_message("m1", "POISON MESSAGE!", delivery_count=2))
    assert isinstance(exc_info.value, MessageProcessingError)


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["plain text", "POISON MESSAGE!"])
async def test_quarantined_message_is_discarded_without_processing(text, log_records):
    logic = RecordingBusinessLogic(fail_on="POISON")
    handler = PoisonAwareMessageHandler(logic)

    result = await handler.handle(make_message("m9", text, delivery_count=3))

    assert result is ProcessingResult.DISCARDED
    assert logic.processed == []
    warnings = [r["message"] for r in log_records if r["level"].name == "WARNING"]
    assert any("discarding poison message m9" in w for w in warnings)
    events = [r["extra"].get("event") for r in log_records]
    assert "message_discarded" in events


@pytest.mark.asyncio
async def test_redelivered_message_logs_previous_failures(log_records):
    handler = PoisonAwareMessageHandler(RecordingBusinessLogic())

    assert await handler.handle(make_message("m2", delivery_count=2)) is ProcessingResult.SUCCESS

    warnings = [r["message"] for r in log_records if r["level"].name == "WARNING"]
    assert warnings == ["message m2 has previously failed processing 1 times"]


@pytest.mark.asyncio
async def test_first_delivery_logs_no_warning(log_records):
    handler = PoisonAwareMessageHandler(RecordingBusinessLogic())

    await handler.handle(make_message("m1"))

    assert not [r for r in log_records if r["level"].name == "WARNING"]


@pytest.mark.asyncio
async def test_custom_threshold_and_marker():
    handler = PoisonAwareMessageHandler(SampleBusinessLogic("BAD"), PoisonMessagePolicy(5))

    with pytest.raises(SimulatedFailureError):
        await handler.handle(make_message("m1", "BAD input", delivery_count=4))
    assert await handler.handle(make_message("m1", "BAD input", delivery_count=5)) is ProcessingResult.DISCARDED
    assert await handler.handle(make_message("m2", "POISON MESSAGE!")) is ProcessingResult.SUCCESS

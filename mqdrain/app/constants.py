"""Action-level constants shared across modules."""
from __future__ import annotations

from enum import Enum

# Invocation parameters used to connect to the broker.
PARAM_QUEUE_NAME = "queueName"
PARAM_PASSWORD = "password"
PARAM_USERNAME = "username"
PARAM_QMGR_CHANNEL_NAME = "qmgrChannelName"
PARAM_QMGR_NAME = "qmgrName"
PARAM_QMGR_PORT = "qmgrPort"
PARAM_QMGR_HOST_NAME = "qmgrHostName"

# Optional: pre-populate the queue with sample messages before draining.
PARAM_NUM_TEST_MESSAGES = "numTestMessages"

RETURN_MESSAGES_PROCESSED = "messagesProcessed"
RETURN_ERROR = "error"

# Delivery attempt at which a message is treated as poison and discarded.
POISON_DELIVERY_THRESHOLD = 3

# Body text that makes the sample business logic fail.
POISON_MESSAGE_MARKER = "POISON MESSAGE!"


class ProcessingResult(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    DISCARDED = "DISCARDED"


class MessageState(str, Enum):
    ACTIVE = "ACTIVE"
    QUARANTINED = "QUARANTINED"

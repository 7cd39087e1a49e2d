"""RabbitMQ connection lifecycle states and AMQP names."""
from enum import Enum

# Set by quorum queues: number of earlier deliveries of this message.
DELIVERY_COUNT_HEADER = "x-delivery-count"
QUEUE_TYPE_ARGUMENT = "x-queue-type"


class ConnectionState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    CHANNEL_OPEN = "CHANNEL_OPEN"
    QUEUE_DECLARED = "QUEUE_DECLARED"
    READY = "READY"
    CLOSING = "CLOSING"
    CLOSED = "CLOSED"

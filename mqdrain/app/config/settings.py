from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mqdrain.app.constants import POISON_DELIVERY_THRESHOLD, POISON_MESSAGE_MARKER


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    consumer_backend: str = Field("rabbitmq", validation_alias="CONSUMER_BACKEND")

    # Quorum queues carry x-delivery-count, classic queues only the redelivered flag.
    queue_type: str = Field("quorum", validation_alias="QUEUE_TYPE")
    queue_durable: bool = Field(True, validation_alias="QUEUE_DURABLE")

    # Delivery attempt (1-based) at which a message is discarded without processing.
    poison_delivery_threshold: int = Field(
        POISON_DELIVERY_THRESHOLD,
        validation_alias="POISON_DELIVERY_THRESHOLD",
        ge=1,
    )
    poison_message_marker: str = Field(POISON_MESSAGE_MARKER, validation_alias="POISON_MESSAGE_MARKER")

    initial_backoff_seconds: float = Field(0.5, validation_alias="INITIAL_BACKOFF_SECONDS")
    max_backoff_seconds: float = Field(5.0, validation_alias="MAX_BACKOFF_SECONDS")
    max_connection_attempts: int = Field(3, validation_alias="MAX_CONNECTION_ATTEMPTS", ge=1)
    backoff_multiplier: float = Field(2.0, validation_alias="BACKOFF_MULTIPLIER")
    connection_timeout_seconds: float = Field(10.0, validation_alias="CONNECTION_TIMEOUT_SECONDS")

    action_config_file: str = Field("configuration.json", validation_alias="ACTION_CONFIG_FILE")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

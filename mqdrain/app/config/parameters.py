"""Invocation parameters: the key-value input handed to the action by the function platform."""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from mqdrain.app.constants import (
    PARAM_NUM_TEST_MESSAGES,
    PARAM_PASSWORD,
    PARAM_QMGR_CHANNEL_NAME,
    PARAM_QMGR_HOST_NAME,
    PARAM_QMGR_NAME,
    PARAM_QMGR_PORT,
    PARAM_QUEUE_NAME,
    PARAM_USERNAME,
)

REQUIRED_PARAMETERS: tuple[str, ...] = (
    PARAM_QMGR_HOST_NAME,
    PARAM_QMGR_PORT,
    PARAM_QMGR_NAME,
    PARAM_QMGR_CHANNEL_NAME,
    PARAM_USERNAME,
    PARAM_PASSWORD,
    PARAM_QUEUE_NAME,
)


class MissingParameterError(ValueError):
    """Raised when a required invocation parameter is absent."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Parameter '{name}' was not found.")
        self.name = name


class ActionParameters(BaseModel):
    """Validated connection parameters plus the optional test-message count."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    queue_name: str = Field(..., alias=PARAM_QUEUE_NAME)
    username: str = Field(..., alias=PARAM_USERNAME)
    password: str = Field(..., alias=PARAM_PASSWORD)
    qmgr_channel_name: str = Field(..., alias=PARAM_QMGR_CHANNEL_NAME)
    qmgr_name: str = Field(..., alias=PARAM_QMGR_NAME)
    qmgr_port: int = Field(..., alias=PARAM_QMGR_PORT, gt=0, lt=65536)
    qmgr_host_name: str = Field(..., alias=PARAM_QMGR_HOST_NAME)
    num_test_messages: int | None = Field(None, alias=PARAM_NUM_TEST_MESSAGES, ge=0)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ActionParameters":
        """Check every required name is present, then validate types.

        Raises MissingParameterError for the first absent name; pydantic's
        ValidationError (also a ValueError) for values of the wrong type.
        """
        for name in REQUIRED_PARAMETERS:
            if params.get(name) is None:
                raise MissingParameterError(name)
        return cls.model_validate(dict(params))

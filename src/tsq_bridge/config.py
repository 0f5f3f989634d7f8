"""BridgeSettings — validated, immutable configuration for a bridge instance."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .primitives.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_DESTINATION = "BROWNAD.REQUEST.QUEUE"
DEFAULT_STORE_QUEUE = "SPRINGQ"


class BridgeSettings(BaseModel):
    """All tunables for the channel, consumer, store and HTTP gateway.

    Destination and store queue names are plain configuration values; nothing
    derives them at runtime.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_destination: str = Field(default=DEFAULT_DESTINATION, min_length=1)
    store_queue: str = Field(default=DEFAULT_STORE_QUEUE, min_length=1)
    max_queue_name_length: int = Field(default=16, ge=1)

    pool_size: int = Field(default=1, ge=1)
    receive_timeout: float = Field(default=1.0, gt=0)

    max_attempts: int = Field(default=5, ge=1)
    retry_base_delay: float = Field(default=0.0, ge=0)
    retry_max_delay: float = Field(default=5.0, ge=0)
    retry_jitter: bool = False

    decision_policy: Literal["content", "random"] = "content"
    random_seed: int = 1
    rollback_keyword: str = Field(default="rollback", min_length=1)

    backend: Literal["memory", "sqlalchemy"] = "memory"
    database_url: str = "sqlite+aiosqlite:///tsq_bridge.db"

    @model_validator(mode="after")
    def _check_consistency(self) -> BridgeSettings:
        if self.retry_base_delay > self.retry_max_delay:
            raise ValueError("retry_base_delay must be <= retry_max_delay")
        if len(self.store_queue) > self.max_queue_name_length:
            raise ValueError(
                f"store_queue {self.store_queue!r} exceeds "
                f"{self.max_queue_name_length} characters"
            )
        return self

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> BridgeSettings:
        """Build settings from a plain mapping (e.g. a parsed config file).

        Raises:
            ConfigurationError: If any value fails validation.
        """
        try:
            return cls.model_validate(dict(mapping))
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

"""Message — immutable delivery unit carried by the channel."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """Immutable wrapper for a string payload in flight.

    ``message_id`` is stable across redeliveries; ``attempt`` is bumped by the
    channel every time the message is handed out again after a failed commit.
    """

    model_config = ConfigDict(frozen=True)

    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    destination: str = Field(..., min_length=1)
    payload: str
    attempt: int = Field(default=1, ge=1, description="Delivery attempt count")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def redelivered(self) -> bool:
        return self.attempt > 1

    def next_attempt(self) -> Message:
        """Return the copy handed out on redelivery."""
        return self.model_copy(update={"attempt": self.attempt + 1})

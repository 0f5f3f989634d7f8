"""Domain types shared by the channel, consumer and gateway."""

from __future__ import annotations

from .message import Message
from .outcome import DeliveryState, Outcome

__all__ = ["DeliveryState", "Message", "Outcome"]

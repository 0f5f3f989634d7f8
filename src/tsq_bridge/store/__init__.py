"""Keyed store (temporary storage queue) implementations."""

from __future__ import annotations

from .memory import InMemoryKeyedStore
from .validation import validate_queue_name

__all__ = ["InMemoryKeyedStore", "validate_queue_name"]

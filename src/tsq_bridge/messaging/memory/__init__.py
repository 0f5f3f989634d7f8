"""In-memory channel adapter."""

from __future__ import annotations

from .channel import InMemoryChannel

__all__ = ["InMemoryChannel"]

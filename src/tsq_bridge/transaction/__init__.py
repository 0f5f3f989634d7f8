"""Transaction scope implementations."""

from __future__ import annotations

from .memory import InMemoryTransactionScope, in_memory_scope_factory

__all__ = ["InMemoryTransactionScope", "in_memory_scope_factory"]

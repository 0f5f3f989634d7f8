"""Durable channel adapter (requires SQLAlchemy)."""

from __future__ import annotations

from .channel import SQLAlchemyChannel

__all__ = ["SQLAlchemyChannel"]

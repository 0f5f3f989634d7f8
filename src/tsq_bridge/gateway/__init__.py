"""Send gateway and its HTTP surface."""

from __future__ import annotations

from .gateway import ERROR_PREFIX, SendGateway, is_error

__all__ = ["ERROR_PREFIX", "SendGateway", "is_error"]

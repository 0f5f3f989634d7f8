"""Logging helpers — correlation-aware formatting for the ``tsq_bridge`` loggers."""

from __future__ import annotations

import logging

from .correlation import get_causation_id, get_correlation_id

LOGGER_NAME = "tsq_bridge"

DEFAULT_FORMAT = (
    "%(asctime)s %(levelname)-7s %(name)s [%(correlation_id)s] %(message)s"
)


class CorrelationIdFilter(logging.Filter):
    """Stamps ``correlation_id`` and ``message_id`` onto records, ``-`` if unbound."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        record.message_id = get_causation_id() or "-"
        return True


def configure_logging(
    level: int | str = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Attach a stream handler with correlation IDs to the package logger.

    The library itself never configures handlers; applications call this once
    at startup. Calling it again replaces the handler rather than stacking.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_tsq_bridge", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(CorrelationIdFilter())
    handler._tsq_bridge = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger

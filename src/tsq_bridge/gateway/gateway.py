"""SendGateway — publishes a payload and reports the result as a string."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..config import DEFAULT_DESTINATION
from ..correlation import correlation_scope, generate_correlation_id
from ..primitives.exceptions import PublishError

if TYPE_CHECKING:
    from ..ports.channel import IMessageChannel

logger = logging.getLogger("tsq_bridge.gateway")

ERROR_PREFIX = "ERROR on JMS send "


class SendGateway:
    """Synchronous producer in front of the message channel.

    ``send`` never raises for a publish failure: the caller gets the payload
    back on success or an ``ERROR on JMS send ...`` string. There is no retry;
    callers resend if they need to.
    """

    def __init__(
        self,
        channel: IMessageChannel,
        default_destination: str = DEFAULT_DESTINATION,
    ) -> None:
        self._channel = channel
        self._default_destination = default_destination

    @property
    def default_destination(self) -> str:
        return self._default_destination

    async def send(
        self,
        destination: str | None,
        payload: str,
        *,
        correlation_id: str | None = None,
    ) -> str:
        """Publish *payload* to *destination* (or the default destination)."""
        target = destination or self._default_destination
        cid = correlation_id or generate_correlation_id()
        with correlation_scope(cid):
            try:
                message = await self._channel.publish(
                    target, payload, correlation_id=cid
                )
            except PublishError as e:
                logger.warning("Send to %s failed: %s", target, e)
                return f"{ERROR_PREFIX}{e}"
            logger.info("Sent %s to %s", message.message_id, target)
        return payload


def is_error(result: str) -> bool:
    """True if *result* is a failure string produced by :meth:`SendGateway.send`."""
    return result.startswith(ERROR_PREFIX)

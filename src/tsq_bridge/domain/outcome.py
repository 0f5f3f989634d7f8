"""Per-delivery outcome and lifecycle states."""

from __future__ import annotations

import enum


class Outcome(str, enum.Enum):
    """Decision returned by a message handler for its transaction scope."""

    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"


class DeliveryState(str, enum.Enum):
    """Where a single delivery ended up.

    RECEIVED → STORE_WRITE_ATTEMPTED → COMMITTED | ROLLED_BACK. A rolled-back
    delivery past the retry bound becomes DEAD_LETTERED; a redelivery of an
    already committed message is DUPLICATE.
    """

    RECEIVED = "RECEIVED"
    STORE_WRITE_ATTEMPTED = "STORE_WRITE_ATTEMPTED"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"
    DEAD_LETTERED = "DEAD_LETTERED"
    DUPLICATE = "DUPLICATE"

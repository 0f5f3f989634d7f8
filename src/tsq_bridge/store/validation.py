from __future__ import annotations

from ..primitives.exceptions import QueueNameError

DEFAULT_MAX_QUEUE_NAME_LENGTH = 16


def validate_queue_name(
    queue_name: str,
    max_length: int = DEFAULT_MAX_QUEUE_NAME_LENGTH,
) -> str:
    """Return *queue_name* unchanged if usable as a record name.

    Raises:
        QueueNameError: If the name is blank or longer than *max_length*.
    """
    if not queue_name or not queue_name.strip():
        raise QueueNameError("Queue name must not be empty", queue_name=queue_name)
    if len(queue_name) > max_length:
        raise QueueNameError(
            f"Queue name {queue_name!r} exceeds {max_length} characters",
            queue_name=queue_name,
        )
    return queue_name

"""Library exceptions for the eventtap package.

Remote failures raised by boto3/botocore (``ClientError``, ``BotoCoreError``)
are never wrapped; the exceptions here cover precondition errors and failures
that AWS reports in-band in an otherwise successful response.
"""

from __future__ import annotations

from typing import Any


class EventTapError(Exception):
    """Base exception for eventtap library."""

    pass


class ChannelDestroyedError(EventTapError):
    """Raised when an operation is attempted on a destroyed channel.

    A channel cannot be reused after ``destroy()``; provision a new one with
    ``setup()`` instead.
    """

    def __init__(self, bus_name: str) -> None:
        self.bus_name = bus_name
        super().__init__(f"Observation channel for bus '{bus_name}' has been destroyed")


class ProvisioningError(EventTapError):
    """Raised when setup cannot complete the tap on the event bus."""

    def __init__(self, bus_name: str, message: str) -> None:
        self.bus_name = bus_name
        super().__init__(f"Failed to provision observation channel for bus '{bus_name}': {message}")


class PublishError(EventTapError):
    """
    Raised when PutEvents reports failed entries.

    Attributes:
        response: The raw PutEvents response, including the failed entries
    """

    def __init__(self, bus_name: str, response: dict[str, Any]) -> None:
        self.bus_name = bus_name
        self.response = response
        failed = [
            entry.get("ErrorCode", "unknown")
            for entry in response.get("Entries", [])
            if entry.get("ErrorCode")
        ]
        super().__init__(
            f"Publishing to bus '{bus_name}' failed for "
            f"{response.get('FailedEntryCount', 0)} entries: {failed}"
        )


class MessageDeleteError(EventTapError):
    """
    Raised when a batch delete of drained messages reports failures.

    Messages that fail to delete stay on the queue and would be observed
    again by a later drain.

    Attributes:
        failed: The ``Failed`` entries from the DeleteMessageBatch response
    """

    def __init__(self, queue_url: str, failed: list[dict[str, Any]]) -> None:
        self.queue_url = queue_url
        self.failed = failed
        ids = [entry.get("Id") for entry in failed]
        super().__init__(f"Failed to delete {len(failed)} messages from {queue_url}: {ids}")


class EnvelopeError(EventTapError):
    """Raised when an SQS message body is not an EventBridge event envelope."""

    def __init__(self, message_id: str | None, message: str) -> None:
        self.message_id = message_id
        super().__init__(f"Invalid event envelope in message {message_id}: {message}")


__all__ = [
    "EventTapError",
    "ChannelDestroyedError",
    "ProvisioningError",
    "PublishError",
    "MessageDeleteError",
    "EnvelopeError",
]

"""
Typed view of events observed through a channel.

EventBridge delivers each event to the tap queue as a JSON envelope in the SQS
message body. ``parse_messages`` turns a raw drain result into ObservedEvent
models so assertions can work with attributes instead of nested dicts.

Example:
    >>> result = await channel.drain()
    >>> events = parse_messages(result)
    >>> events[0].detail_type
    'OrderCreated'
    >>> events[0].detail
    {'id': 2}
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from eventtap.exceptions import EnvelopeError


class ObservedEvent(BaseModel):
    """
    An EventBridge event as received from the tap queue.

    Attributes:
        id: EventBridge event id
        version: Envelope version (always "0" today)
        source: Event source as published
        detail_type: Event detail type (``detail-type`` in the envelope)
        account: Account the event was published in
        region: Region the event was published in
        time: Publish time reported by EventBridge
        resources: ARNs named by the publisher
        detail: Decoded event body
        message_id: SQS message id the envelope arrived in
        receipt_handle: SQS receipt handle of that message
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    version: str = "0"
    source: str
    detail_type: str = Field(alias="detail-type")
    account: str
    region: str
    time: datetime
    resources: list[str] = Field(default_factory=list)
    detail: Any = None
    message_id: str | None = None
    receipt_handle: str | None = None

    def detail_matches(self, **fields: Any) -> bool:
        """True if ``detail`` is a mapping containing every given field value."""
        if not isinstance(self.detail, dict):
            return not fields
        return all(key in self.detail and self.detail[key] == value for key, value in fields.items())


def parse_message(message: dict[str, Any]) -> ObservedEvent:
    """
    Parse one SQS message into an ObservedEvent.

    Raises:
        EnvelopeError: If the body is not JSON or not an EventBridge envelope
    """
    message_id = message.get("MessageId")
    try:
        body = json.loads(message.get("Body") or "")
    except json.JSONDecodeError as e:
        raise EnvelopeError(message_id, f"body is not JSON ({e})") from e

    if not isinstance(body, dict):
        raise EnvelopeError(message_id, f"expected a JSON object, got {type(body).__name__}")

    try:
        return ObservedEvent.model_validate(
            {
                **body,
                "message_id": message_id,
                "receipt_handle": message.get("ReceiptHandle"),
            }
        )
    except ValidationError as e:
        raise EnvelopeError(message_id, str(e)) from e


def parse_messages(receive_result: dict[str, Any]) -> list[ObservedEvent]:
    """Parse every message of a drain result, preserving receive order."""
    return [parse_message(message) for message in receive_result.get("Messages") or []]


__all__ = [
    "ObservedEvent",
    "parse_message",
    "parse_messages",
]

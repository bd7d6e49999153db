"""
Standard span attributes for eventtap.

Attribute names follow OpenTelemetry messaging semantic conventions where
one exists and use the ``eventtap.`` prefix otherwise.

Example:
    >>> from eventtap.observability.attributes import ATTR_BUS_NAME, ATTR_MESSAGE_COUNT
    >>>
    >>> with tracer.span(
    ...     "eventtap.channel.drain",
    ...     {ATTR_BUS_NAME: "orders-bus", ATTR_MESSAGE_COUNT: 3},
    ... ):
    ...     pass
"""

# =============================================================================
# Messaging Attributes (OpenTelemetry semantic conventions)
# =============================================================================

ATTR_MESSAGING_SYSTEM = "messaging.system"
"""Messaging system identifier (always 'aws_sqs' for the tap queue)."""

ATTR_MESSAGING_DESTINATION = "messaging.destination"
"""Queue URL the operation reads from or writes to."""

ATTR_MESSAGING_OPERATION = "messaging.operation"
"""Operation type ('publish', 'receive', 'purge')."""

# =============================================================================
# Tap Attributes
# =============================================================================

ATTR_BUS_NAME = "eventtap.bus.name"
"""Name of the event bus being observed."""

ATTR_RULE_NAME = "eventtap.rule.name"
"""Name of the routing rule forwarding bus events to the queue."""

ATTR_RETAIN = "eventtap.retain"
"""Whether the channel keeps its infrastructure on destroy (boolean)."""

ATTR_REUSED = "eventtap.reused"
"""Whether setup reused an existing rule and target (boolean)."""

ATTR_MESSAGE_COUNT = "eventtap.message.count"
"""Number of messages received by a drain (integer)."""

ATTR_EVENT_SOURCE = "eventtap.event.source"
"""Source field of a published event."""

ATTR_EVENT_DETAIL_TYPE = "eventtap.event.detail_type"
"""Detail type of a published event."""

ATTR_ERROR_TYPE = "eventtap.error.type"
"""Exception class name when an operation fails."""


__all__ = [
    "ATTR_MESSAGING_SYSTEM",
    "ATTR_MESSAGING_DESTINATION",
    "ATTR_MESSAGING_OPERATION",
    "ATTR_BUS_NAME",
    "ATTR_RULE_NAME",
    "ATTR_RETAIN",
    "ATTR_REUSED",
    "ATTR_MESSAGE_COUNT",
    "ATTR_EVENT_SOURCE",
    "ATTR_EVENT_DETAIL_TYPE",
    "ATTR_ERROR_TYPE",
]

"""Observation channel implementations for the eventtap library.

Available Implementations:
- EventBridgeObservationChannel: SQS-backed tap on an AWS EventBridge bus

Example:
    >>> from eventtap.channel import EventBridgeObservationChannel, EventBridgeTapConfig
    >>>
    >>> config = EventBridgeTapConfig(region_name="eu-west-2")
    >>> channel = await EventBridgeObservationChannel.setup("orders-bus", config)
    >>> await channel.publish("order-service", "OrderCreated", '{"id": 1}')
    >>> await channel.destroy()
"""

from eventtap.channel.eventbridge import (
    EventBridgeObservationChannel,
    EventBridgeTapConfig,
    EventBridgeTapStats,
    account_id_from_queue_url,
    build_event_pattern,
    build_queue_policy,
)
from eventtap.channel.interface import ObservationChannel

__all__ = [
    # Interface
    "ObservationChannel",
    # EventBridge channel
    "EventBridgeObservationChannel",
    "EventBridgeTapConfig",
    "EventBridgeTapStats",
    "account_id_from_queue_url",
    "build_event_pattern",
    "build_queue_policy",
]

"""
eventtap - Disposable observation channels on AWS EventBridge buses.

This library provides:
- An SQS-backed tap on an EventBridge bus, provisioned and torn down per test run
- Publishing through the bus with automatic removal of self-published events
- Bounded, destructive draining of observed events
- Retain mode that keeps the tap standing between runs
- Typed event envelopes and assertions for tests
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("eventtap")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from eventtap.channel import (
    EventBridgeObservationChannel,
    EventBridgeTapConfig,
    EventBridgeTapStats,
    ObservationChannel,
)
from eventtap.envelope import ObservedEvent, parse_message, parse_messages
from eventtap.exceptions import (
    ChannelDestroyedError,
    EnvelopeError,
    EventTapError,
    MessageDeleteError,
    ProvisioningError,
    PublishError,
)

__all__ = [
    "__version__",
    # Channels
    "ObservationChannel",
    "EventBridgeObservationChannel",
    "EventBridgeTapConfig",
    "EventBridgeTapStats",
    # Envelopes
    "ObservedEvent",
    "parse_message",
    "parse_messages",
    # Exceptions
    "EventTapError",
    "ChannelDestroyedError",
    "ProvisioningError",
    "PublishError",
    "MessageDeleteError",
    "EnvelopeError",
]

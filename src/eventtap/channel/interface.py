"""Observation channel interface definitions.

An observation channel is a tap on an event bus: a queue that receives a
filtered copy of everything published to the bus, so tests can assert that an
event was published without instrumenting the publisher.

Channels only exist in the provisioned state. Implementations expose an async
``setup()`` factory that provisions the tap and returns the usable channel.
"""

from abc import ABC, abstractmethod
from typing import Any


class ObservationChannel(ABC):
    """
    Abstract observation channel bound to one named event bus.

    Lifecycle:
        setup() -> publish/drain/clear (any number of times) -> destroy()

    Operations are async and not safe for overlapping calls on the same
    instance. Channels bound to different buses are independent.

    Example:
        >>> channel = await EventBridgeObservationChannel.setup("orders-bus")
        >>> await channel.publish("order-service", "OrderCreated", '{"id": 1}')
        >>> result = await channel.drain()
        >>> await channel.destroy()
    """

    @property
    @abstractmethod
    def bus_name(self) -> str:
        """Name of the observed event bus."""
        pass

    @property
    @abstractmethod
    def retain(self) -> bool:
        """Whether destroy() keeps the provisioned infrastructure standing."""
        pass

    @property
    @abstractmethod
    def is_destroyed(self) -> bool:
        """True once destroy() has completed."""
        pass

    @abstractmethod
    async def publish(self, source: str, detail_type: str, detail: str) -> dict[str, Any]:
        """
        Publish one event to the bus, then drain the channel.

        The trailing drain removes the just-published event from the tap so
        that later drains only see traffic produced by the system under test.

        Args:
            source: Event source
            detail_type: Event detail type
            detail: Serialized event body (not validated)

        Returns:
            The bus acknowledgment for the publish
        """
        pass

    @abstractmethod
    async def drain(self) -> dict[str, Any]:
        """
        Receive pending messages with bounded waiting and delete them.

        Draining is destructive: a message returned here is not returned by a
        later drain. Duplicate deliveries are not filtered.

        Returns:
            The raw receive result, possibly with no messages
        """
        pass

    @abstractmethod
    async def clear(self) -> dict[str, Any]:
        """Discard all queued messages without returning them."""
        pass

    @abstractmethod
    async def destroy(self) -> bool:
        """
        Tear the channel down.

        Deletes all provisioned infrastructure, or only clears the queue when
        the channel retains its infrastructure.

        Returns:
            True on success
        """
        pass


__all__ = [
    "ObservationChannel",
]

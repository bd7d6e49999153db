"""
Test utilities for eventtap.

Components:
    ObservedEventAssertions: Assertions over events drained from a channel

Example:
    >>> from eventtap.testing import ObservedEventAssertions
    >>>
    >>> assertions = ObservedEventAssertions.from_drain(await channel.drain())
    >>> assertions.assert_event_observed(detail_type="OrderCreated", id=2)
"""

from eventtap.testing.assertions import ObservedEventAssertions

__all__ = [
    "ObservedEventAssertions",
]

"""
Shared pytest fixtures for the eventtap library tests.

This module provides:
- Fake AWS fixtures (fake_aws with linked EventBridge and SQS clients)
- Configuration fixtures (tap_config, retain_config)
- Channel fixtures (channel provisioned against the fakes)
- Mock client fixtures for call-level assertions
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from eventtap.channel.eventbridge import (
    EventBridgeObservationChannel,
    EventBridgeTapConfig,
)
from eventtap.observability import MockTracer
from tests.fixtures import ACCOUNT_ID, BUS_NAME, QUEUE_URL, REGION, FakeAWS


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def tap_config() -> EventBridgeTapConfig:
    """Channel config with no long-poll wait and tracing disabled."""
    return EventBridgeTapConfig(
        region_name=REGION,
        wait_time_seconds=0,
        enable_tracing=False,
    )


@pytest.fixture
def retain_config() -> EventBridgeTapConfig:
    """Channel config in retain mode."""
    return EventBridgeTapConfig(
        region_name=REGION,
        wait_time_seconds=0,
        enable_tracing=False,
        retain=True,
    )


# ============================================================================
# Fake AWS Fixtures
# ============================================================================


@pytest.fixture
def fake_aws() -> FakeAWS:
    """Provide a fake account with the test bus already created."""
    aws = FakeAWS(account_id=ACCOUNT_ID, region=REGION)
    aws.events.create_event_bus(Name=BUS_NAME)
    return aws


@pytest_asyncio.fixture
async def channel(
    fake_aws: FakeAWS,
    tap_config: EventBridgeTapConfig,
) -> AsyncGenerator[EventBridgeObservationChannel, None]:
    """Provide a channel provisioned against the fake account."""
    channel = await EventBridgeObservationChannel.setup(
        BUS_NAME,
        tap_config,
        events_client=fake_aws.events,
        sqs_client=fake_aws.sqs,
    )

    yield channel

    if not channel.is_destroyed:
        await channel.destroy()


# ============================================================================
# Mock Client Fixtures
# ============================================================================


@pytest.fixture
def mock_sqs() -> MagicMock:
    """SQS client mock answering the setup calls with realistic shapes."""
    sqs = MagicMock()
    sqs.create_queue.return_value = {"QueueUrl": QUEUE_URL}
    sqs.set_queue_attributes.return_value = {}
    sqs.receive_message.return_value = {}
    sqs.delete_message_batch.return_value = {"Successful": []}
    sqs.purge_queue.return_value = {}
    sqs.delete_queue.return_value = {}
    return sqs


@pytest.fixture
def mock_events() -> MagicMock:
    """EventBridge client mock answering with realistic shapes."""
    events = MagicMock()
    events.put_rule.return_value = {"RuleArn": "arn:aws:events:rule"}
    events.put_targets.return_value = {"FailedEntryCount": 0, "FailedEntries": []}
    events.put_events.return_value = {"FailedEntryCount": 0, "Entries": [{"EventId": "evt-1"}]}
    events.remove_targets.return_value = {"FailedEntryCount": 0, "FailedEntries": []}
    events.delete_rule.return_value = {}
    return events


@pytest.fixture
def mock_tracer() -> MockTracer:
    """Provide a tracer that records spans."""
    return MockTracer()


"""
Shared test fixtures for the eventtap library.

This module provides in-memory fakes of the boto3 clients the observation
channel talks to, plus the names and identifiers the tests provision under.

Usage:
    from tests.fixtures import BUS_NAME, FakeAWS, client_error, make_message
"""

from tests.fixtures.aws import (
    ACCOUNT_ID,
    BUS_NAME,
    EVENTS_PRINCIPAL,
    QUEUE_ARN,
    QUEUE_URL,
    REGION,
    FakeAWS,
    FakeEventBridgeClient,
    FakeQueue,
    FakeRule,
    FakeSQSClient,
    client_error,
    make_message,
)

__all__ = [
    "ACCOUNT_ID",
    "BUS_NAME",
    "EVENTS_PRINCIPAL",
    "QUEUE_ARN",
    "QUEUE_URL",
    "REGION",
    "FakeAWS",
    "FakeEventBridgeClient",
    "FakeQueue",
    "FakeRule",
    "FakeSQSClient",
    "client_error",
    "make_message",
]

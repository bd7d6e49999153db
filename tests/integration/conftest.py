"""
Shared pytest fixtures for integration tests.

This module provides a LocalStack container emulating EventBridge and SQS,
managed by testcontainers, plus boto3 clients and a freshly created event
bus for each test.

If testcontainers or Docker is not available, tests are automatically skipped.
"""

from __future__ import annotations

import subprocess
from collections.abc import Generator
from typing import Any
from uuid import uuid4

import boto3
import pytest

from eventtap.channel.eventbridge import EventBridgeTapConfig

# ============================================================================
# Testcontainers Detection
# ============================================================================

TESTCONTAINERS_AVAILABLE = False

try:
    from testcontainers.localstack import LocalStackContainer

    TESTCONTAINERS_AVAILABLE = True
except ImportError:
    LocalStackContainer = None  # type: ignore[assignment, misc]


def is_docker_available() -> bool:
    """Check if Docker is available for running containers."""
    try:
        result = subprocess.run(
            ["docker", "info"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (subprocess.TimeoutExpired, OSError):
        return False


DOCKER_AVAILABLE = is_docker_available()

LOCALSTACK_IMAGE = "localstack/localstack:3.8"
LOCALSTACK_REGION = "eu-west-2"
LOCALSTACK_CREDENTIALS = {
    "aws_access_key_id": "test",
    "aws_secret_access_key": "test",
}


# ============================================================================
# Container Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def localstack_container() -> Generator[Any, None, None]:
    """
    Provide a LocalStack container with EventBridge and SQS.

    Container is shared across all tests in the session for efficiency.
    """
    if not TESTCONTAINERS_AVAILABLE or not DOCKER_AVAILABLE:
        pytest.skip("LocalStack testcontainer not available")

    container = LocalStackContainer(
        image=LOCALSTACK_IMAGE,
        region_name=LOCALSTACK_REGION,
    ).with_services("sqs", "events")
    container.start()

    yield container

    container.stop()


@pytest.fixture(scope="session")
def localstack_url(localstack_container: Any) -> str:
    """Get the LocalStack edge endpoint URL."""
    return localstack_container.get_url()


@pytest.fixture
def localstack_config(localstack_url: str) -> EventBridgeTapConfig:
    """Channel config pointing at LocalStack with a short long-poll."""
    return EventBridgeTapConfig(
        region_name=LOCALSTACK_REGION,
        endpoint_url=localstack_url,
        wait_time_seconds=2,
        enable_tracing=False,
        **LOCALSTACK_CREDENTIALS,
    )


@pytest.fixture
def localstack_events(localstack_config: EventBridgeTapConfig) -> Any:
    """EventBridge client on LocalStack, standing in for the system under test."""
    session = boto3.Session(region_name=LOCALSTACK_REGION, **LOCALSTACK_CREDENTIALS)
    return localstack_config.create_client(session, "events")


@pytest.fixture
def localstack_sqs(localstack_config: EventBridgeTapConfig) -> Any:
    """SQS client on LocalStack for inspecting the tap queue directly."""
    session = boto3.Session(region_name=LOCALSTACK_REGION, **LOCALSTACK_CREDENTIALS)
    return localstack_config.create_client(session, "sqs")


@pytest.fixture
def event_bus(localstack_events: Any) -> Generator[str, None, None]:
    """Create a uniquely named event bus and delete it afterwards."""
    name = f"orders-bus-{uuid4().hex[:8]}"
    localstack_events.create_event_bus(Name=name)

    yield name

    localstack_events.delete_event_bus(Name=name)

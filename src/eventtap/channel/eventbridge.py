"""EventBridge observation channel backed by an SQS queue.

This module provisions a tap on an AWS EventBridge bus: an SQS queue, a
routing rule that forwards every event of the caller's account to that queue,
the rule's single target, and a queue policy allowing EventBridge to deliver.
Tests then publish through the channel and drain it to assert on what the
bus carried.

Features:
- Deterministic resource names derived from the bus name
- Long-poll draining with batch deletion of received messages
- Retain mode that keeps the tap standing between test runs
- Explicit per-channel clients and configuration (no process-wide singletons)
- Optional OpenTelemetry tracing

Example:
    >>> from eventtap.channel.eventbridge import (
    ...     EventBridgeObservationChannel,
    ...     EventBridgeTapConfig,
    ... )
    >>>
    >>> config = EventBridgeTapConfig(region_name="eu-west-2", retain=True)
    >>> channel = await EventBridgeObservationChannel.setup("orders-bus", config)
    >>> await channel.publish("order-service", "OrderCreated", '{"id": 1}')
    >>> result = await channel.drain()
    >>> await channel.destroy()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from eventtap.channel.interface import ObservationChannel
from eventtap.exceptions import (
    ChannelDestroyedError,
    MessageDeleteError,
    ProvisioningError,
    PublishError,
)
from eventtap.observability import SpanKindEnum, Tracer, create_tracer
from eventtap.observability.attributes import (
    ATTR_BUS_NAME,
    ATTR_ERROR_TYPE,
    ATTR_EVENT_DETAIL_TYPE,
    ATTR_EVENT_SOURCE,
    ATTR_MESSAGE_COUNT,
    ATTR_MESSAGING_DESTINATION,
    ATTR_MESSAGING_OPERATION,
    ATTR_MESSAGING_SYSTEM,
    ATTR_RETAIN,
    ATTR_REUSED,
    ATTR_RULE_NAME,
)

logger = logging.getLogger(__name__)

MESSAGING_SYSTEM = "aws_sqs"
QUEUE_POLICY_VERSION = "2008-10-17"
SEND_MESSAGE_ACTION = "SQS:SendMessage"


@dataclass
class EventBridgeTapConfig:
    """Configuration for an EventBridge observation channel.

    Attributes:
        region_name: AWS region of the bus and the tap queue.
        profile_name: Shared-credentials profile. Explicit keys and the
            standard AWS environment variables take precedence, as in boto3.
        aws_access_key_id: Explicit access key override.
        aws_secret_access_key: Explicit secret key override.
        aws_session_token: Explicit session token override.
        endpoint_url: Endpoint override applied to both the EventBridge and
            SQS clients (e.g. a LocalStack URL).
        max_attempts: Total botocore attempts per call. None keeps botocore's
            default.
        retry_mode: botocore retry mode ('legacy', 'standard', 'adaptive').
            None keeps botocore's default.
        retain: Keep the queue, rule and target standing on destroy() and
            only purge the queue. Repeated runs then avoid creation throttles.
        wait_time_seconds: Long-poll bound for each drain, 0..20 seconds.
        max_messages: Messages requested per drain, 1..10.
        target_id: Identifier of the single target attached to the rule.
        partition: ARN partition used for the queue ARN.
        delivery_principal: Service principal granted SendMessage on the queue.
        enable_tracing: Enable OpenTelemetry tracing if available.

    Example:
        >>> config = EventBridgeTapConfig()
        >>> config.queue_name("orders-bus")
        'orders-bus-testing-queue'
        >>> config.rule_name("orders-bus")
        'test-orders-bus-rule'
    """

    region_name: str = "eu-west-2"
    profile_name: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_session_token: str | None = None
    endpoint_url: str | None = None
    max_attempts: int | None = None
    retry_mode: str | None = None
    retain: bool = False
    wait_time_seconds: int = 5
    max_messages: int = 10
    target_id: str = "1"
    partition: str = "aws"
    delivery_principal: str = "events.amazonaws.com"
    enable_tracing: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.wait_time_seconds <= 20:
            raise ValueError(
                f"wait_time_seconds must be between 0 and 20, got {self.wait_time_seconds}"
            )
        if not 1 <= self.max_messages <= 10:
            raise ValueError(f"max_messages must be between 1 and 10, got {self.max_messages}")
        if not self.target_id:
            raise ValueError("target_id must not be empty")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    def queue_name(self, bus_name: str) -> str:
        """Name of the tap queue for a bus."""
        return f"{bus_name}-testing-queue"

    def rule_name(self, bus_name: str) -> str:
        """Name of the routing rule for a bus."""
        return f"test-{bus_name}-rule"

    def queue_arn(self, account_id: str, queue_name: str) -> str:
        """Fully-qualified ARN of a queue in this config's region."""
        return f"arn:{self.partition}:sqs:{self.region_name}:{account_id}:{queue_name}"

    def client_config(self) -> Config | None:
        """Build the botocore client config carrying the retry policy.

        Returns:
            A Config when a retry override is set, None otherwise.
        """
        retries: dict[str, Any] = {}
        if self.max_attempts is not None:
            retries["total_max_attempts"] = self.max_attempts
        if self.retry_mode is not None:
            retries["mode"] = self.retry_mode
        if not retries:
            return None
        return Config(retries=retries)

    def create_session(self) -> boto3.Session:
        """Create a boto3 session from the credential fields."""
        return boto3.Session(
            aws_access_key_id=self.aws_access_key_id,
            aws_secret_access_key=self.aws_secret_access_key,
            aws_session_token=self.aws_session_token,
            region_name=self.region_name,
            profile_name=self.profile_name,
        )

    def create_client(self, session: boto3.Session, service_name: str) -> Any:
        """Create a service client on a session with the endpoint and retry overrides."""
        return session.client(
            service_name,
            region_name=self.region_name,
            endpoint_url=self.endpoint_url,
            config=self.client_config(),
        )


@dataclass
class EventBridgeTapStats:
    """Counters for one observation channel.

    Attributes:
        events_published: Events accepted by PutEvents through publish().
        drains: Completed drain cycles, including self-drains.
        messages_received: Messages returned by all drains.
        messages_deleted: Messages removed by batch deletes.
        clears: Completed queue purges.
        provisioned_at: When setup() finished.
        last_publish_at: Time of the last successful publish.
        last_drain_at: Time of the last completed drain.
    """

    events_published: int = 0
    drains: int = 0
    messages_received: int = 0
    messages_deleted: int = 0
    clears: int = 0
    provisioned_at: datetime | None = None
    last_publish_at: datetime | None = None
    last_drain_at: datetime | None = None


def account_id_from_queue_url(queue_url: str) -> str:
    """Extract the account id from an SQS queue URL.

    Queue URLs have the form ``https://sqs.<region>.amazonaws.com/<account>/<name>``.

    Raises:
        ValueError: If the URL has no account segment
    """
    parts = queue_url.split("/")
    if len(parts) < 5 or not parts[3]:
        raise ValueError(f"Cannot extract account id from queue URL '{queue_url}'")
    return parts[3]


def build_event_pattern(account_id: str) -> dict[str, list[str]]:
    """Event pattern matching every event of an account."""
    return {"account": [account_id]}


def build_queue_policy(queue_arn: str, principal: str) -> dict[str, Any]:
    """Queue policy allowing a service principal to send into exactly one queue."""
    return {
        "Version": QUEUE_POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": principal},
                "Action": SEND_MESSAGE_ACTION,
                "Resource": queue_arn,
            }
        ],
    }


class EventBridgeObservationChannel(ObservationChannel):
    """Observation channel tapping an EventBridge bus through an SQS queue.

    Instances are created by the async ``setup()`` factory, which provisions
    the tap before returning. Operations after ``destroy()`` raise
    ChannelDestroyedError.

    Thread Safety:
        Not safe for overlapping calls on one instance. Channels on different
        buses share nothing but the boto3 connection pools of their clients.

    Example:
        >>> async with await EventBridgeObservationChannel.setup("orders-bus") as channel:
        ...     await channel.clear()
        ...     await place_order()
        ...     result = await channel.drain()
    """

    def __init__(
        self,
        *,
        bus_name: str,
        queue_url: str,
        queue_arn: str,
        account_id: str,
        config: EventBridgeTapConfig,
        events_client: Any,
        sqs_client: Any,
        tracer: Tracer | None = None,
    ) -> None:
        """Bind a channel to already-provisioned infrastructure.

        Use ``setup()`` unless the queue, rule and target already exist.

        Args:
            bus_name: Name of the observed bus
            queue_url: URL of the tap queue
            queue_arn: ARN of the tap queue
            account_id: Account the rule filters on
            config: Channel configuration; its ``retain`` flag and drain bounds are fixed here
            events_client: boto3 EventBridge client
            sqs_client: boto3 SQS client
            tracer: Optional custom Tracer instance
        """
        self._bus_name = bus_name
        self._queue_url = queue_url
        self._queue_arn = queue_arn
        self._account_id = account_id
        self._config = config
        self._rule_name = config.rule_name(bus_name)
        self._target_id = config.target_id
        self._retain = config.retain
        self._wait_time_seconds = config.wait_time_seconds
        self._max_messages = config.max_messages
        self._events = events_client
        self._sqs = sqs_client
        self._destroyed = False
        self._stats = EventBridgeTapStats(provisioned_at=datetime.now(UTC))

        self._logger = logging.getLogger(__name__)
        self._tracer = tracer or create_tracer(__name__, config.enable_tracing)

    @classmethod
    async def setup(
        cls,
        bus_name: str,
        config: EventBridgeTapConfig | None = None,
        *,
        events_client: Any | None = None,
        sqs_client: Any | None = None,
        tracer: Tracer | None = None,
    ) -> EventBridgeObservationChannel:
        """Provision a tap on an event bus and return the channel.

        Creates the queue, derives its ARN and account from the queue URL,
        puts the account-filtered rule and its single target, then grants
        the bus's delivery principal SendMessage on the queue. With
        ``config.retain`` an existing rule already targeting the queue is
        reused instead of recreated.

        Nothing is rolled back when a step fails; the error propagates and
        any resources created so far stay in place.

        Args:
            bus_name: Name of an existing event bus
            config: Channel configuration. Defaults to EventBridgeTapConfig().
            events_client: Pre-built EventBridge client (created from config if None)
            sqs_client: Pre-built SQS client (created from config if None)
            tracer: Optional custom Tracer instance

        Returns:
            The provisioned channel

        Raises:
            ValueError: If bus_name is empty
            ProvisioningError: If the queue identity cannot be derived or the
                target could not be attached
            botocore.exceptions.ClientError: If any AWS call is rejected
        """
        if not bus_name:
            raise ValueError("bus_name must be a non-empty string")

        config = config or EventBridgeTapConfig()
        if events_client is None or sqs_client is None:
            session = config.create_session()
            events_client = events_client or config.create_client(session, "events")
            sqs_client = sqs_client or config.create_client(session, "sqs")
        tracer = tracer or create_tracer(__name__, config.enable_tracing)

        queue_name = config.queue_name(bus_name)
        rule_name = config.rule_name(bus_name)

        if not config.retain:
            logger.info(
                "If running repeatedly set retain=True to keep testing resources "
                "up and avoid creation throttles",
                extra={"bus_name": bus_name},
            )

        with tracer.span(
            "eventtap.channel.setup",
            {
                ATTR_BUS_NAME: bus_name,
                ATTR_RULE_NAME: rule_name,
                ATTR_RETAIN: config.retain,
                ATTR_MESSAGING_SYSTEM: MESSAGING_SYSTEM,
            },
        ) as span:
            try:
                queue_result = await asyncio.to_thread(
                    sqs_client.create_queue,
                    QueueName=queue_name,
                )
                queue_url = queue_result.get("QueueUrl")
                if not queue_url:
                    raise ProvisioningError(bus_name, "CreateQueue returned no QueueUrl")

                try:
                    account_id = account_id_from_queue_url(queue_url)
                except ValueError as e:
                    raise ProvisioningError(bus_name, str(e)) from e
                queue_arn = config.queue_arn(account_id, queue_name)

                reused = config.retain and await cls._has_target(
                    events_client, bus_name, rule_name, config.target_id, queue_arn
                )
                if not reused:
                    await asyncio.to_thread(
                        events_client.put_rule,
                        Name=rule_name,
                        EventBusName=bus_name,
                        EventPattern=json.dumps(build_event_pattern(account_id)),
                        State="ENABLED",
                    )
                    targets_result = await asyncio.to_thread(
                        events_client.put_targets,
                        EventBusName=bus_name,
                        Rule=rule_name,
                        Targets=[{"Id": config.target_id, "Arn": queue_arn}],
                    )
                    if targets_result.get("FailedEntryCount", 0):
                        raise ProvisioningError(
                            bus_name,
                            f"PutTargets rejected the queue target: "
                            f"{targets_result.get('FailedEntries', [])}",
                        )

                await asyncio.to_thread(
                    sqs_client.set_queue_attributes,
                    QueueUrl=queue_url,
                    Attributes={
                        "Policy": json.dumps(
                            build_queue_policy(queue_arn, config.delivery_principal)
                        ),
                    },
                )
                if span is not None:
                    span.set_attribute(ATTR_REUSED, reused)
                    span.set_attribute(ATTR_MESSAGING_DESTINATION, queue_url)

            except Exception as e:
                if span is not None:
                    span.set_attribute(ATTR_ERROR_TYPE, type(e).__name__)
                logger.error(
                    f"Failed to provision observation channel: {e}",
                    exc_info=True,
                    extra={
                        "bus_name": bus_name,
                        "queue_name": queue_name,
                        "rule_name": rule_name,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise

        logger.info(
            f"Provisioned observation channel on bus {bus_name}",
            extra={
                "bus_name": bus_name,
                "queue_url": queue_url,
                "rule_name": rule_name,
                "retain": config.retain,
                "reused": reused,
            },
        )

        return cls(
            bus_name=bus_name,
            queue_url=queue_url,
            queue_arn=queue_arn,
            account_id=account_id,
            config=config,
            events_client=events_client,
            sqs_client=sqs_client,
            tracer=tracer,
        )

    @staticmethod
    async def _has_target(
        events_client: Any,
        bus_name: str,
        rule_name: str,
        target_id: str,
        queue_arn: str,
    ) -> bool:
        """Check whether the rule exists and already targets the queue."""
        try:
            result = await asyncio.to_thread(
                events_client.list_targets_by_rule,
                Rule=rule_name,
                EventBusName=bus_name,
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                return False
            raise

        return any(
            target.get("Id") == target_id and target.get("Arn") == queue_arn
            for target in result.get("Targets", [])
        )

    @property
    def bus_name(self) -> str:
        return self._bus_name

    @property
    def retain(self) -> bool:
        return self._retain

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def queue_url(self) -> str:
        return self._queue_url

    @property
    def queue_arn(self) -> str:
        return self._queue_arn

    @property
    def account_id(self) -> str:
        return self._account_id

    @property
    def rule_name(self) -> str:
        return self._rule_name

    @property
    def target_id(self) -> str:
        return self._target_id

    @property
    def config(self) -> EventBridgeTapConfig:
        """Get the configuration."""
        return self._config

    @property
    def stats(self) -> EventBridgeTapStats:
        """Get current statistics."""
        return self._stats

    def _ensure_active(self) -> None:
        if self._destroyed:
            raise ChannelDestroyedError(self._bus_name)

    def _span_attributes(self, operation: str) -> dict[str, Any]:
        return {
            ATTR_BUS_NAME: self._bus_name,
            ATTR_MESSAGING_SYSTEM: MESSAGING_SYSTEM,
            ATTR_MESSAGING_DESTINATION: self._queue_url,
            ATTR_MESSAGING_OPERATION: operation,
        }

    async def publish(self, source: str, detail_type: str, detail: str) -> dict[str, Any]:
        """Publish one event to the bus, then drain the channel.

        The drain runs only after PutEvents has returned and completes before
        this method returns; its result is discarded.

        Args:
            source: Event source
            detail_type: Event detail type
            detail: Serialized event body

        Returns:
            The PutEvents response (entry ids)

        Raises:
            ChannelDestroyedError: If the channel has been destroyed
            PublishError: If PutEvents reports failed entries
            botocore.exceptions.ClientError: If the call is rejected
        """
        self._ensure_active()

        attributes = self._span_attributes("publish")
        attributes[ATTR_EVENT_SOURCE] = source
        attributes[ATTR_EVENT_DETAIL_TYPE] = detail_type
        with self._tracer.span(
            "eventtap.channel.publish",
            attributes,
            kind=SpanKindEnum.PRODUCER,
        ):
            result: dict[str, Any] = await asyncio.to_thread(
                self._events.put_events,
                Entries=[
                    {
                        "EventBusName": self._bus_name,
                        "Source": source,
                        "DetailType": detail_type,
                        "Detail": detail,
                    }
                ],
            )
            if result.get("FailedEntryCount", 0):
                raise PublishError(self._bus_name, result)

            self._stats.events_published += 1
            self._stats.last_publish_at = datetime.now(UTC)

        # Sweep our own event off the tap before the caller asserts on it
        await self.drain()

        return result

    async def drain(self) -> dict[str, Any]:
        """Long-poll the tap queue once and delete what was received.

        Returns:
            The raw ReceiveMessage response. ``Messages`` is absent or empty
            when nothing arrived within ``wait_time_seconds``.

        Raises:
            ChannelDestroyedError: If the channel has been destroyed
            MessageDeleteError: If the batch delete reports failed entries
            botocore.exceptions.ClientError: If a call is rejected
        """
        self._ensure_active()

        with self._tracer.span(
            "eventtap.channel.drain",
            self._span_attributes("receive"),
            kind=SpanKindEnum.CONSUMER,
        ) as span:
            result: dict[str, Any] = await asyncio.to_thread(
                self._sqs.receive_message,
                QueueUrl=self._queue_url,
                WaitTimeSeconds=self._wait_time_seconds,
                MaxNumberOfMessages=self._max_messages,
            )
            messages = result.get("Messages") or []

            entries = [
                {"Id": message["MessageId"], "ReceiptHandle": message["ReceiptHandle"]}
                for message in messages
                if message.get("MessageId") and message.get("ReceiptHandle")
            ]
            if entries:
                delete_result = await asyncio.to_thread(
                    self._sqs.delete_message_batch,
                    QueueUrl=self._queue_url,
                    Entries=entries,
                )
                failed = delete_result.get("Failed") or []
                if failed:
                    self._logger.warning(
                        f"Failed to delete {len(failed)} drained messages",
                        extra={
                            "bus_name": self._bus_name,
                            "queue_url": self._queue_url,
                            "failed": failed,
                        },
                    )
                    raise MessageDeleteError(self._queue_url, failed)
                self._stats.messages_deleted += len(entries)

            if span is not None:
                span.set_attribute(ATTR_MESSAGE_COUNT, len(messages))

        self._stats.drains += 1
        self._stats.messages_received += len(messages)
        self._stats.last_drain_at = datetime.now(UTC)

        self._logger.debug(
            f"Drained {len(messages)} messages",
            extra={
                "bus_name": self._bus_name,
                "queue_url": self._queue_url,
                "message_count": len(messages),
            },
        )

        return result

    async def clear(self) -> dict[str, Any]:
        """Purge every message currently on the tap queue.

        Returns:
            The raw PurgeQueue response

        Raises:
            ChannelDestroyedError: If the channel has been destroyed
            botocore.exceptions.ClientError: If the purge is rejected
                (SQS allows one purge per queue every 60 seconds)
        """
        self._ensure_active()

        with self._tracer.span("eventtap.channel.clear", self._span_attributes("purge")):
            result: dict[str, Any] = await asyncio.to_thread(
                self._sqs.purge_queue,
                QueueUrl=self._queue_url,
            )

        self._stats.clears += 1
        self._logger.debug(
            "Purged observation queue",
            extra={"bus_name": self._bus_name, "queue_url": self._queue_url},
        )

        return result

    async def destroy(self) -> bool:
        """Tear the channel down.

        Without retain: deletes the queue, removes the target from the rule,
        then deletes the rule, in that order. With retain: purges the queue
        and leaves queue, rule and target in place.

        Returns:
            True once teardown has completed

        Raises:
            ChannelDestroyedError: If the channel has already been destroyed
            botocore.exceptions.ClientError: From the first failing step
        """
        self._ensure_active()

        attributes = self._span_attributes("delete")
        attributes[ATTR_RULE_NAME] = self._rule_name
        attributes[ATTR_RETAIN] = self._retain
        with self._tracer.span("eventtap.channel.destroy", attributes):
            if self._retain:
                await self.clear()
            else:
                await asyncio.to_thread(
                    self._sqs.delete_queue,
                    QueueUrl=self._queue_url,
                )
                await asyncio.to_thread(
                    self._events.remove_targets,
                    Ids=[self._target_id],
                    Rule=self._rule_name,
                    EventBusName=self._bus_name,
                )
                await asyncio.to_thread(
                    self._events.delete_rule,
                    Name=self._rule_name,
                    EventBusName=self._bus_name,
                )

        self._destroyed = True

        self._logger.info(
            "Retained observation channel infrastructure"
            if self._retain
            else "Removed observation channel infrastructure",
            extra={
                "bus_name": self._bus_name,
                "queue_url": self._queue_url,
                "rule_name": self._rule_name,
                "retain": self._retain,
            },
        )

        return True

    async def __aenter__(self) -> EventBridgeObservationChannel:
        """Async context manager entry; the channel is already provisioned."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Destroy the channel on exit unless it was destroyed explicitly."""
        if not self._destroyed:
            await self.destroy()


__all__ = [
    "EventBridgeObservationChannel",
    "EventBridgeTapConfig",
    "EventBridgeTapStats",
    "account_id_from_queue_url",
    "build_event_pattern",
    "build_queue_policy",
]

"""
Observability utilities for eventtap.

Tracing for channel operations and the standard attribute names used on the
spans. OpenTelemetry is an optional dependency; without it every tracer is a
no-op.
"""

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
from eventtap.observability.tracer import (
    OTEL_AVAILABLE,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    SpanKindEnum,
    Tracer,
    create_tracer,
)

__all__ = [
    "OTEL_AVAILABLE",
    # Tracer (composition-based API)
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "SpanKindEnum",
    "create_tracer",
    # Attributes
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

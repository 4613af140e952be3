"""Shared contracts for types that cross the planner <-> telemetry boundary.

This package is a LEAF MODULE with no outbound dependencies to core or
telemetry. Settings classes live in querytrace.core.config and are NOT
re-exported here.
"""

from querytrace.contracts.config import RuntimeTelemetryConfig, TransportConfig
from querytrace.contracts.enums import TelemetryEventKind
from querytrace.contracts.errors import PushdownUnsupportedError
from querytrace.contracts.events import (
    TELEMETRY_SOURCE,
    BufferedEvent,
    Document,
    StructuredEvent,
)

__all__ = [
    "TELEMETRY_SOURCE",
    "BufferedEvent",
    "Document",
    "PushdownUnsupportedError",
    "RuntimeTelemetryConfig",
    "StructuredEvent",
    "TelemetryEventKind",
    "TransportConfig",
]

# src/querytrace/contracts/events.py
"""Structured telemetry events.

A StructuredEvent is the unit handed from producers to the event buffer and,
after a drain, to the transport. Events are frozen: once built they are owned
by the buffer until drained and are never mutated.
"""

from dataclasses import dataclass
from typing import Any, TypeAlias

from querytrace.contracts.enums import TelemetryEventKind

# Source tag stamped on every event leaving the process
TELEMETRY_SOURCE = "spark_connector"

# Canonical JSON-like payload: object, array or scalar
Document: TypeAlias = dict[str, Any] | list[Any] | str | bool | int | float


@dataclass(frozen=True, slots=True)
class StructuredEvent:
    """A typed, source-tagged telemetry payload.

    Attributes:
        event_type: Kind of event (serialized as its wire string)
        data: Canonical document carried by the event
        source: Source tag, always TELEMETRY_SOURCE for this connector
    """

    event_type: TelemetryEventKind
    data: Document
    source: str = TELEMETRY_SOURCE

    def to_document(self) -> dict[str, Any]:
        """Return the wire-level object: {"type", "source", "data"} in that order."""
        return {
            "type": self.event_type.value,
            "source": self.source,
            "data": self.data,
        }


@dataclass(frozen=True, slots=True)
class BufferedEvent:
    """An event paired with the epoch-millisecond time it was recorded."""

    event: StructuredEvent
    timestamp_ms: int

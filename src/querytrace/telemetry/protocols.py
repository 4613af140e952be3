# src/querytrace/telemetry/protocols.py
"""Protocol definitions for telemetry transports.

A transport is the network-facing telemetry client. The telemetry core only
sequences calls to it: one add_log_to_batch() per drained event, then a
single send_batch_async() for the whole batch.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TelemetryTransport(Protocol):
    """Protocol for telemetry transports.

    Lifecycle:
        1. Discovery: querytrace_get_transports hook returns transport classes
        2. Instantiation: the factory creates one instance
        3. Configuration: configure() called with transport-specific options
        4. Operation: add_log_to_batch() per event, send_batch_async() per drain
        5. Shutdown: close()

    Error handling:
        - configure() MUST raise TelemetryTransportError on invalid options
        - send_batch_async() must not block on delivery
        - close() MUST be idempotent
    """

    @property
    def name(self) -> str:
        """Transport name for configuration reference."""
        ...

    def configure(self, options: dict[str, Any]) -> None:
        """Configure the transport from its options mapping.

        Raises:
            TelemetryTransportError: If options are invalid or incomplete
        """
        ...

    def add_log_to_batch(self, document: dict[str, Any], timestamp_ms: int) -> None:
        """Accumulate one wire-level event document into the pending batch."""
        ...

    def send_batch_async(self) -> None:
        """Start sending the accumulated batch and return without waiting."""
        ...

    def close(self) -> None:
        """Release resources; waits for in-flight sends to finish."""
        ...

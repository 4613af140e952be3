# src/querytrace/telemetry/errors.py
"""Telemetry-specific exceptions.

These exceptions are for telemetry subsystem errors only. They must never
escape into the query execution path.
"""


class TelemetryTransportError(Exception):
    """Raised when a transport encounters a configuration or discovery error.

    This is raised during transport setup (discovery/configure), NOT while
    relaying batches. Relaying must not raise - failures are logged instead.

    Attributes:
        transport_name: Name of the transport that failed
        message: Human-readable error description
    """

    def __init__(self, transport_name: str, message: str) -> None:
        self.transport_name = transport_name
        self.message = message
        super().__init__(f"Transport '{transport_name}' failed: {message}")

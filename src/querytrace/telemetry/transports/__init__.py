"""Built-in telemetry transports.

Transports are discovered via pluggy hooks. BuiltinTransportsPlugin registers
the transports shipped with querytrace:
- HttpTelemetryTransport ("http"): posts batches to the telemetry endpoint
- ConsoleTransport ("console"): writes batches to stdout/stderr
"""

from querytrace.telemetry.hookspecs import hookimpl
from querytrace.telemetry.transports.console import ConsoleTransport
from querytrace.telemetry.transports.http import HttpTelemetryTransport


class BuiltinTransportsPlugin:
    """Plugin that registers built-in telemetry transports."""

    @hookimpl
    def querytrace_get_transports(self) -> list[type]:
        """Return built-in transport classes."""
        return [HttpTelemetryTransport, ConsoleTransport]


__all__ = [
    "BuiltinTransportsPlugin",
    "ConsoleTransport",
    "HttpTelemetryTransport",
]

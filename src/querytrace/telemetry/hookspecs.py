# src/querytrace/telemetry/hookspecs.py
"""pluggy hook specifications for telemetry transports.

Transports implement these hooks to register themselves. The factory calls
them to build the name -> class registry before instantiating the configured
transport.

Usage (implementing a transport plugin):
    from querytrace.telemetry.hookspecs import hookimpl

    class MyTransportPlugin:
        @hookimpl
        def querytrace_get_transports(self):
            return [MyTransport]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from querytrace.telemetry.protocols import TelemetryTransport

PROJECT_NAME = "querytrace"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class QuerytraceTransportSpec:
    """Hook specifications for telemetry transport plugins."""

    @hookspec
    def querytrace_get_transports(self) -> list[type["TelemetryTransport"]]:  # type: ignore[empty-body]
        """Return telemetry transport classes (not instances)."""

# src/querytrace/telemetry/__init__.py
"""Telemetry capture and relay for the connector.

Components:
- canonicalize: plan/expression trees -> canonical documents
- buffer: EventBuffer, lock-guarded pending events with swap-on-drain
- manager: TelemetryManager, emitter, flush controller and producers
- client_info: one-time client environment document
- protocols: TelemetryTransport protocol for network clients
- hookspecs: pluggy hooks for transport discovery
- factory: create_telemetry_manager() from runtime config
- errors: TelemetryTransportError for configuration failures
- transports: built-in transports (http, console)

Usage:
    from querytrace.telemetry import TelemetryManager, create_telemetry_manager

    manager = create_telemetry_manager(config)
    manager.send_client_info_if_not_yet({"spark_version": "3.5.1"})
    manager.add_plan_telemetry(plan)
    manager.send()
"""

from querytrace.telemetry.buffer import EventBuffer
from querytrace.telemetry.canonicalize import (
    expression_to_document,
    expressions_to_document,
    plan_to_document,
    plan_tree,
)
from querytrace.telemetry.client_info import client_info_document
from querytrace.telemetry.errors import TelemetryTransportError
from querytrace.telemetry.factory import create_telemetry_manager, create_telemetry_transport
from querytrace.telemetry.manager import TelemetryManager
from querytrace.telemetry.protocols import TelemetryTransport
from querytrace.telemetry.transports import ConsoleTransport, HttpTelemetryTransport

__all__ = [
    "ConsoleTransport",
    "EventBuffer",
    "HttpTelemetryTransport",
    "TelemetryManager",
    "TelemetryTransport",
    "TelemetryTransportError",
    "client_info_document",
    "create_telemetry_manager",
    "create_telemetry_transport",
    "expression_to_document",
    "expressions_to_document",
    "plan_to_document",
    "plan_tree",
]

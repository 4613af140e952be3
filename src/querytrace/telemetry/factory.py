# src/querytrace/telemetry/factory.py
"""Factory functions for creating the TelemetryManager from configuration.

Glue between RuntimeTelemetryConfig and the runtime objects:
1. Discover transport classes via the querytrace_get_transports pluggy hook
2. Instantiate and configure the named transport
3. Wrap it in a TelemetryManager that owns it

Usage:
    from querytrace.contracts.config import RuntimeTelemetryConfig
    from querytrace.telemetry.factory import create_telemetry_manager

    config = RuntimeTelemetryConfig.from_settings(settings.telemetry)
    manager = create_telemetry_manager(config)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pluggy
import structlog

from querytrace.contracts.config import RuntimeTelemetryConfig
from querytrace.telemetry.errors import TelemetryTransportError
from querytrace.telemetry.hookspecs import PROJECT_NAME, QuerytraceTransportSpec
from querytrace.telemetry.manager import TelemetryManager
from querytrace.telemetry.protocols import TelemetryTransport
from querytrace.telemetry.transports import BuiltinTransportsPlugin

logger = structlog.get_logger(__name__)


def _transport_name(transport_class: Any) -> str:
    """Read the registry name a transport class declares in its _name attribute."""
    name = getattr(transport_class, "_name", None)
    if not isinstance(transport_class, type) or not isinstance(name, str) or not name:
        raise TelemetryTransportError(
            getattr(transport_class, "__name__", repr(transport_class)),
            "Transports must be classes with a non-empty string class attribute _name",
        )
    return name


def discover_transport_registry(
    transport_plugins: Iterable[Any] = (),
) -> dict[str, type[TelemetryTransport]]:
    """Collect transport classes from the built-in plugin and any extra plugins.

    Args:
        transport_plugins: Additional plugin objects implementing
            ``querytrace_get_transports``.

    Returns:
        Mapping of transport name to transport class.

    Raises:
        TelemetryTransportError: If a plugin cannot be registered, its hook
            fails or returns something other than an iterable of classes, or
            two transports share a name.
    """
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(QuerytraceTransportSpec)
    for plugin in [BuiltinTransportsPlugin(), *transport_plugins]:
        try:
            plugin_manager.register(plugin)
        except (pluggy.PluginValidationError, ValueError) as e:
            raise TelemetryTransportError(
                "telemetry_plugins",
                f"Invalid telemetry transport plugin {type(plugin).__name__}: {e}",
            ) from e

    try:
        results = plugin_manager.hook.querytrace_get_transports()
    except Exception as e:
        raise TelemetryTransportError("telemetry_plugins", f"querytrace_get_transports failed: {e}") from e

    registry: dict[str, type[TelemetryTransport]] = {}
    for transports in results:
        if isinstance(transports, str | bytes) or not isinstance(transports, Iterable):
            raise TelemetryTransportError(
                "telemetry_plugins",
                f"querytrace_get_transports returned {type(transports).__name__}; "
                "expected iterable of transport classes",
            )
        for transport_class in transports:
            name = _transport_name(transport_class)
            if name in registry:
                raise TelemetryTransportError(
                    name,
                    f"Duplicate telemetry transport name '{name}' discovered: "
                    f"{registry[name].__name__} and {transport_class.__name__}",
                )
            registry[name] = transport_class
    return registry


def create_telemetry_transport(
    config: RuntimeTelemetryConfig,
    *,
    transport_plugins: Iterable[Any] = (),
) -> TelemetryTransport:
    """Instantiate and configure the transport named in config.

    Raises:
        TelemetryTransportError: If the name is unknown or configuration fails
    """
    registry = discover_transport_registry(transport_plugins)
    try:
        transport_class = registry[config.transport.name]
    except KeyError:
        available = sorted(registry.keys())
        raise TelemetryTransportError(
            transport_name=config.transport.name,
            message=f"Unknown transport. Available transports: {available}",
        ) from None

    transport = transport_class()
    transport.configure(dict(config.transport.options))
    logger.debug(
        "transport_configured",
        transport=config.transport.name,
        options_keys=sorted(config.transport.options.keys()),
    )
    return transport


def create_telemetry_manager(
    config: RuntimeTelemetryConfig,
    *,
    transport_plugins: Iterable[Any] = (),
) -> TelemetryManager | None:
    """Create a TelemetryManager owning the configured transport.

    Returns:
        TelemetryManager if telemetry is enabled, None otherwise.

    Raises:
        TelemetryTransportError: If transport discovery or configuration fails
    """
    if not config.enabled:
        logger.debug("telemetry_disabled", reason="config.enabled=False")
        return None

    transport = create_telemetry_transport(config, transport_plugins=transport_plugins)
    return TelemetryManager(transport, deployment=config.deployment)

# src/querytrace/contracts/config.py
"""Runtime telemetry configuration.

Frozen dataclasses built from the validated Pydantic settings in
querytrace.core.config. The telemetry package only ever sees these runtime
objects, never the settings models.

Field Origins (all from TelemetrySettings):
    - enabled: TelemetrySettings.enabled (direct mapping)
    - transport: TelemetrySettings.transport (converted to TransportConfig)
    - deployment: TelemetrySettings.deployment (direct mapping)
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

# Settings are imported lazily to keep contracts free of core imports.
if TYPE_CHECKING:
    from querytrace.core.config import TelemetrySettings


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Configuration for the telemetry transport.

    Example YAML that produces a TransportConfig:
        telemetry:
          transport:
            name: http
            options:
              endpoint: https://account.snowflakecomputing.com
              token: ${SNOWFLAKE_SESSION_TOKEN}
    """

    name: str
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("transport name cannot be empty")


@dataclass(frozen=True, slots=True)
class RuntimeTelemetryConfig:
    """Runtime configuration for telemetry capture and relay."""

    enabled: bool
    transport: TransportConfig
    deployment: str | None = None

    @classmethod
    def default(cls) -> "RuntimeTelemetryConfig":
        """Telemetry on, relayed to the console.

        The http transport needs an endpoint, so it cannot be a default.
        """
        return cls(enabled=True, transport=TransportConfig(name="console"))

    @classmethod
    def from_settings(cls, settings: "TelemetrySettings") -> "RuntimeTelemetryConfig":
        """Factory from the TelemetrySettings config model.

        Args:
            settings: Validated Pydantic settings model

        Returns:
            RuntimeTelemetryConfig with mapped values
        """
        return cls(
            enabled=settings.enabled,
            transport=TransportConfig(
                name=settings.transport.name.lower(),
                options=dict(settings.transport.options),
            ),
            deployment=settings.deployment,
        )

"""Tests for RuntimeTelemetryConfig and TransportConfig."""

import pytest

from querytrace.contracts.config import RuntimeTelemetryConfig, TransportConfig
from querytrace.core.config import TelemetrySettings, TransportSettings


class TestTransportConfig:
    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="cannot be empty"):
            TransportConfig(name="")

    def test_options_default_empty(self) -> None:
        assert TransportConfig(name="console").options == {}


class TestRuntimeTelemetryConfig:
    def test_default_is_enabled_console(self) -> None:
        config = RuntimeTelemetryConfig.default()
        assert config.enabled is True
        assert config.transport.name == "console"
        assert config.deployment is None

    def test_from_settings_maps_fields(self) -> None:
        settings = TelemetrySettings(
            enabled=False,
            transport=TransportSettings(name="HTTP", options={"endpoint": "https://example.com"}),
            deployment="prod",
        )

        config = RuntimeTelemetryConfig.from_settings(settings)

        assert config.enabled is False
        assert config.transport.name == "http"
        assert config.transport.options == {"endpoint": "https://example.com"}
        assert config.deployment == "prod"

    def test_from_settings_copies_options(self) -> None:
        settings = TelemetrySettings(transport=TransportSettings(name="console", options={"format": "json"}))
        config = RuntimeTelemetryConfig.from_settings(settings)
        assert config.transport.options is not settings.transport.options

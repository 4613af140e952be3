# src/querytrace/telemetry/transports/console.py
"""Console transport for telemetry batches.

Writes each event of a batch to stdout or stderr, as JSON lines or in a
human-readable form. Used for local debugging and by the CLI.
"""

from __future__ import annotations

import json
import sys
import threading
from datetime import UTC, datetime
from typing import Any, Literal, TextIO, TypeGuard

import structlog

from querytrace.telemetry.errors import TelemetryTransportError

logger = structlog.get_logger(__name__)


def _is_valid_format(v: str) -> TypeGuard[Literal["json", "pretty"]]:
    return v in {"json", "pretty"}


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    return v in {"stdout", "stderr"}


class ConsoleTransport:
    """Relay telemetry batches to stdout/stderr.

    Supports two output formats:
    - json: One {"timestamp", "message"} object per line
    - pretty: "[ISO TIMESTAMP] type: data"

    Configuration options:
        format: Output format - "json" (default) or "pretty"
        output: Output stream - "stdout" (default) or "stderr"

    Example configuration:
        telemetry:
          transport:
            name: console
            options:
              format: pretty
              output: stderr
    """

    _name = "console"

    _VALID_FORMATS: frozenset[str] = frozenset({"json", "pretty"})
    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    def __init__(self) -> None:
        self._format: Literal["json", "pretty"] = "json"
        self._output: Literal["stdout", "stderr"] = "stdout"
        self._lock = threading.Lock()
        self._batch: list[tuple[dict[str, Any], int]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def _stream(self) -> TextIO:
        # Resolved per write so redirected streams (e.g. test capture) are honoured
        return sys.stdout if self._output == "stdout" else sys.stderr

    def configure(self, options: dict[str, Any]) -> None:
        """Configure output format and stream.

        Raises:
            TelemetryTransportError: If option values are invalid
        """
        format_value = options.get("format", "json")
        if not isinstance(format_value, str):
            raise TelemetryTransportError(
                self._name,
                f"'format' must be a string, got {type(format_value).__name__}",
            )
        if _is_valid_format(format_value):
            self._format = format_value
        else:
            raise TelemetryTransportError(
                self._name,
                f"Invalid format '{format_value}'. Must be one of: {', '.join(sorted(self._VALID_FORMATS))}",
            )

        output_value = options.get("output", "stdout")
        if not isinstance(output_value, str):
            raise TelemetryTransportError(
                self._name,
                f"'output' must be a string, got {type(output_value).__name__}",
            )
        if _is_valid_output(output_value):
            self._output = output_value
        else:
            raise TelemetryTransportError(
                self._name,
                f"Invalid output '{output_value}'. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )

        logger.debug("Console transport configured", format=self._format, output=self._output)

    def add_log_to_batch(self, document: dict[str, Any], timestamp_ms: int) -> None:
        with self._lock:
            self._batch.append((document, timestamp_ms))

    def send_batch_async(self) -> None:
        """Write the pending batch. Console writes are local, so this completes inline."""
        with self._lock:
            batch, self._batch = self._batch, []
        try:
            stream = self._stream
            for document, timestamp_ms in batch:
                if self._format == "json":
                    line = json.dumps({"timestamp": timestamp_ms, "message": document})
                else:
                    line = self._format_pretty(document, timestamp_ms)
                print(line, file=stream)
            stream.flush()
        except Exception as e:
            logger.warning("Failed to write telemetry batch", transport=self._name, events=len(batch), error=str(e))

    def _format_pretty(self, document: dict[str, Any], timestamp_ms: int) -> str:
        timestamp = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC).isoformat()
        return f"[{timestamp}] {document['type']}: {json.dumps(document['data'])}"

    def close(self) -> None:
        """No-op: the console transport does not own stdout/stderr."""
        pass

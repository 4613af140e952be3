# tests/telemetry/fixtures.py
"""Reusable test doubles for telemetry testing.

- RecordingTransport: in-memory transport that captures every batch
- FailingTransport: transport whose calls raise, for failure isolation tests
"""

from __future__ import annotations

import threading
from typing import Any


class RecordingTransport:
    """In-memory transport that records batches for verification.

    Example:
        transport = RecordingTransport()
        manager = TelemetryManager(transport)
        manager.add_log(TelemetryEventKind.SPARK_EGRESS, {"bytes": 10})
        manager.send()
        assert transport.sent_batches[0][0][0]["type"] == "spark_egress"
    """

    def __init__(self, name: str = "recording") -> None:
        self._name = name
        self._lock = threading.Lock()
        self.pending: list[tuple[dict[str, Any], int]] = []
        self.sent_batches: list[list[tuple[dict[str, Any], int]]] = []
        self.configured_with: dict[str, Any] | None = None
        self.close_count = 0

    @property
    def name(self) -> str:
        return self._name

    def configure(self, options: dict[str, Any]) -> None:
        self.configured_with = options

    def add_log_to_batch(self, document: dict[str, Any], timestamp_ms: int) -> None:
        with self._lock:
            self.pending.append((document, timestamp_ms))

    def send_batch_async(self) -> None:
        with self._lock:
            self.sent_batches.append(self.pending)
            self.pending = []

    def close(self) -> None:
        self.close_count += 1

    # =========================================================================
    # Assertion Helpers
    # =========================================================================

    @property
    def sent_documents(self) -> list[dict[str, Any]]:
        """Every document sent so far, across batches, in order."""
        return [document for batch in self.sent_batches for document, _ in batch]

    def documents_of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [document for document in self.sent_documents if document["type"] == event_type]


class FailingTransport(RecordingTransport):
    """Transport whose add_log_to_batch and/or send_batch_async raise."""

    def __init__(self, *, fail_add: bool = True, fail_send: bool = False) -> None:
        super().__init__(name="failing")
        self._fail_add = fail_add
        self._fail_send = fail_send

    def add_log_to_batch(self, document: dict[str, Any], timestamp_ms: int) -> None:
        if self._fail_add:
            raise RuntimeError("Simulated add_log_to_batch failure")
        super().add_log_to_batch(document, timestamp_ms)

    def send_batch_async(self) -> None:
        if self._fail_send:
            raise RuntimeError("Simulated send_batch_async failure")
        super().send_batch_async()

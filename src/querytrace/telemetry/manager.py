# src/querytrace/telemetry/manager.py
"""TelemetryManager records connector telemetry and relays it in batches.

The TelemetryManager is the single owner of telemetry state for a process:
1. Wraps canonical documents as StructuredEvents and buffers them
2. Drains the buffer and hands each event to the transport, then triggers
   one asynchronous batch send
3. Gates the one-time client info event and filters known pushdown failures
4. Tracks health metrics for monitoring

Design principles:
- Telemetry never breaks a query: transport failures are logged and counted,
  never raised
- Fire-and-forget: send() does not wait for delivery
- Callers decide when to emit; the manager only canonicalizes and relays

Thread Safety:
    All public methods may be called from any thread.
    - The event buffer has its own lock, held only to append or swap
    - _client_info_lock makes the sent-once check-and-set atomic
    - _metrics_lock guards the health counters
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from querytrace import __version__
from querytrace.contracts.enums import TelemetryEventKind
from querytrace.contracts.errors import PushdownUnsupportedError
from querytrace.contracts.events import Document, StructuredEvent
from querytrace.contracts.plans import LogicalPlan
from querytrace.telemetry.buffer import EventBuffer
from querytrace.telemetry.canonicalize import plan_to_document
from querytrace.telemetry.client_info import client_info_document
from querytrace.telemetry.protocols import TelemetryTransport

logger = structlog.get_logger(__name__)


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def _copy_document(document: Any) -> Any:
    """Deep-copy the dicts and lists of a document without recursing."""
    if not isinstance(document, dict | list):
        return document
    root: dict[Any, Any] | list[Any] = {} if isinstance(document, dict) else []
    stack: list[tuple[Any, Any]] = [(document, root)]
    while stack:
        source, target = stack.pop()
        items = source.items() if isinstance(source, dict) else enumerate(source)
        for key, value in items:
            copied = value
            if isinstance(value, dict | list):
                copied = {} if isinstance(value, dict) else []
                stack.append((value, copied))
            if isinstance(target, dict):
                target[key] = copied
            else:
                target.append(copied)
    return root


class TelemetryManager:
    """Buffers connector telemetry events and flushes them to a transport.

    Example:
        >>> manager = TelemetryManager(transport=transport)
        >>> manager.send_client_info_if_not_yet({"spark_version": "3.5.1"})
        >>> manager.add_plan_telemetry(plan)
        >>> manager.send()
        >>> manager.close()
    """

    def __init__(
        self,
        transport: TelemetryTransport | None = None,
        *,
        deployment: str | None = None,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        """Initialize the TelemetryManager.

        Args:
            transport: Default transport for send(). May be None when callers
                always pass one explicitly.
            deployment: Deployment name reported in the client info event
            clock: Source of epoch-millisecond timestamps
        """
        self._transport = transport
        self._deployment = deployment
        self._clock = clock
        self._buffer = EventBuffer()

        self._client_info_lock = threading.Lock()
        self._client_info_sent = False

        self._metrics_lock = threading.Lock()
        self._events_recorded = 0
        self._events_sent = 0
        self._send_failures = 0
        self._known_failures_suppressed = 0
        self._producer_failures = 0
        self._last_output: dict[str, Any] | None = None

    # =========================================================================
    # Emitter and flush
    # =========================================================================

    def add_log(
        self,
        event_type: TelemetryEventKind,
        data: Document,
        timestamp_ms: int | None = None,
    ) -> StructuredEvent:
        """Wrap a document as a StructuredEvent and buffer it.

        Ownership of data passes to the buffer: callers must not mutate it
        after this call.

        Args:
            event_type: Kind of event
            data: Canonical document payload
            timestamp_ms: Epoch milliseconds; defaults to now

        Returns:
            The buffered event
        """
        event = StructuredEvent(event_type=event_type, data=data)
        recorded_at = self._clock() if timestamp_ms is None else timestamp_ms
        logger.debug("Telemetry output", event_type=event_type.value, data=data)
        self._buffer.record(event, recorded_at)
        with self._metrics_lock:
            self._events_recorded += 1
            self._last_output = event.to_document()
        return event

    def send(self, transport: TelemetryTransport | None = None) -> int:
        """Drain the buffer and relay the batch through a transport.

        Each drained event is added to the transport's batch in recording
        order, then send_batch_async() is called once, also for an empty
        batch. Delivery is not awaited.

        Args:
            transport: Transport to use; defaults to the one given at construction

        Returns:
            Number of events accepted by the transport
        """
        target = transport if transport is not None else self._transport
        if target is None:
            logger.warning("No telemetry transport available, keeping events buffered", pending=len(self._buffer))
            return 0

        batch = self._buffer.drain()
        accepted = 0
        failures = 0
        for buffered in batch:
            document = buffered.event.to_document()
            logger.debug("Send telemetry", timestamp_ms=buffered.timestamp_ms, log=document)
            try:
                target.add_log_to_batch(document, buffered.timestamp_ms)
                accepted += 1
            except Exception as e:
                # Telemetry must not break the query path - log and continue
                failures += 1
                logger.warning(
                    "Telemetry transport rejected event",
                    transport=target.name,
                    event_type=document["type"],
                    error=str(e),
                )

        try:
            target.send_batch_async()
        except Exception as e:
            failures += 1
            logger.warning("Telemetry batch send failed", transport=target.name, error=str(e))

        with self._metrics_lock:
            self._events_sent += accepted
            self._send_failures += failures
        logger.debug("Telemetry batch dispatched", transport=target.name, events=accepted, failures=failures)
        return accepted

    # =========================================================================
    # Producers
    # =========================================================================

    def send_client_info_if_not_yet(
        self,
        extra_values: Mapping[str, Any] | None = None,
        transport: TelemetryTransport | None = None,
    ) -> bool:
        """Send the client info event, at most once per manager.

        The flag is claimed before sending; a failed send is not retried.

        Args:
            extra_values: Additional key/value pairs; they override built-in keys
            transport: Transport to use; defaults to the one given at construction

        Returns:
            True if this call emitted the event
        """
        with self._client_info_lock:
            if self._client_info_sent:
                return False
            self._client_info_sent = True

        metric = client_info_document(self._deployment)
        if extra_values:
            metric.update(extra_values)
        self.add_log(TelemetryEventKind.SPARK_CLIENT_INFO, metric)
        self.send(transport)
        return True

    def add_pushdown_fail_message(self, plan: LogicalPlan, error: PushdownUnsupportedError) -> bool:
        """Buffer a pushdown failure report; it is sent with the next batch.

        Known unsupported operations are logged but not reported.

        Args:
            plan: The logical plan that contained the unsupported operation
            error: The pushdown failure raised by the planner

        Returns:
            True if an event was buffered
        """
        logger.info(
            "Pushdown fails because of operation",
            operation=error.unsupported_operation,
            message=error.message,
            is_known=error.is_known_unsupported_operation,
        )

        if error.is_known_unsupported_operation:
            with self._metrics_lock:
                self._known_failures_suppressed += 1
            return False

        try:
            rendered_plan = str(plan)
        except Exception as e:
            self._producer_failed(TelemetryEventKind.SPARK_PUSHDOWN_FAIL, e)
            return False

        metric = {
            "version": __version__,
            "operation": error.unsupported_operation,
            "message": error.message,
            "details": error.details,
            "plan": rendered_plan,
        }
        self.add_log(TelemetryEventKind.SPARK_PUSHDOWN_FAIL, metric)
        return True

    def add_plan_telemetry(self, plan: LogicalPlan) -> bool:
        """Buffer the canonical shape of a complete query that reads Snowflake.

        A plan that cannot be canonicalized is logged and dropped.

        Returns:
            True if an event was buffered
        """
        try:
            result = plan_to_document(plan)
        except Exception as e:
            self._producer_failed(TelemetryEventKind.SPARK_PLAN, e)
            return False
        if result is None:
            return False
        event_type, document = result
        self.add_log(event_type, document)
        return True

    def _producer_failed(self, event_type: TelemetryEventKind, error: Exception) -> None:
        # Telemetry must not break the query path - log, count and drop the event
        with self._metrics_lock:
            self._producer_failures += 1
        logger.warning(
            "Telemetry event dropped, building it failed",
            event_type=event_type.value,
            error_type=type(error).__name__,
            error=str(error),
        )

    # =========================================================================
    # State and lifecycle
    # =========================================================================

    @property
    def client_info_sent(self) -> bool:
        with self._client_info_lock:
            return self._client_info_sent

    @property
    def pending_count(self) -> int:
        """Number of events waiting for the next send()."""
        return len(self._buffer)

    @property
    def last_output(self) -> dict[str, Any] | None:
        """Copy of the wire document of the most recently buffered event."""
        with self._metrics_lock:
            return _copy_document(self._last_output)

    @property
    def health_metrics(self) -> dict[str, Any]:
        """Return a snapshot of telemetry health counters.

        - events_recorded: Events buffered since construction or reset()
        - events_sent: Events accepted by a transport
        - send_failures: Transport calls that raised
        - known_failures_suppressed: Known pushdown failures not reported
        - producer_failures: Events dropped because building them raised
        - pending: Events waiting for the next send()
        """
        with self._metrics_lock:
            metrics: dict[str, Any] = {
                "events_recorded": self._events_recorded,
                "events_sent": self._events_sent,
                "send_failures": self._send_failures,
                "known_failures_suppressed": self._known_failures_suppressed,
                "producer_failures": self._producer_failures,
            }
        metrics["pending"] = len(self._buffer)
        return metrics

    def reset(self) -> None:
        """Discard pending events, re-arm the client info event and zero metrics."""
        discarded = self._buffer.drain()
        with self._client_info_lock:
            self._client_info_sent = False
        with self._metrics_lock:
            self._events_recorded = 0
            self._events_sent = 0
            self._send_failures = 0
            self._known_failures_suppressed = 0
            self._producer_failures = 0
            self._last_output = None
        if discarded:
            logger.debug("Telemetry reset discarded pending events", discarded=len(discarded))

    def close(self) -> None:
        """Close the owned transport, if any. Pending events are not sent."""
        logger.info("Telemetry manager closing", **self.health_metrics)
        if self._transport is None:
            return
        try:
            self._transport.close()
        except Exception as e:
            logger.warning("Transport close failed", transport=self._transport.name, error=str(e))

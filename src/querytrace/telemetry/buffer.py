# src/querytrace/telemetry/buffer.py
"""Thread-safe event buffer with swap-on-drain semantics.

Producers on any thread call record(); the flush path calls drain(), which
replaces the pending list with a fresh one and hands the old list back.

Key design decisions:
- One lock guards the list reference. drain() holds it only for the swap,
  never for per-event work, so producers are not stalled by a flush.
- Events are appended, so a drained batch is already in recording order.
- An event recorded concurrently with a drain lands either in the drained
  batch or in the new list, never in both and never in neither.
"""

import threading

from querytrace.contracts.events import BufferedEvent, StructuredEvent


class EventBuffer:
    """Pending telemetry events awaiting the next flush.

    Thread Safety:
        record(), drain() and __len__() are safe to call from any thread.

    Example:
        buffer = EventBuffer()
        buffer.record(event, timestamp_ms=1_700_000_000_000)
        batch = buffer.drain()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: list[BufferedEvent] = []

    def record(self, event: StructuredEvent, timestamp_ms: int) -> None:
        """Append an event to the pending list.

        Args:
            event: The structured event to buffer
            timestamp_ms: Epoch milliseconds at which the event was recorded
        """
        buffered = BufferedEvent(event=event, timestamp_ms=timestamp_ms)
        with self._lock:
            self._pending.append(buffered)

    def drain(self) -> list[BufferedEvent]:
        """Atomically take every pending event, oldest first.

        Returns:
            The drained events. Empty if nothing was recorded since the last drain.
        """
        with self._lock:
            drained, self._pending = self._pending, []
        return drained

    def __len__(self) -> int:
        """Return the number of pending events."""
        with self._lock:
            return len(self._pending)

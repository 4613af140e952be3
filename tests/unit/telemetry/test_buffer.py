"""Tests for EventBuffer.

Tests cover:
- Recording order is preserved by drain()
- drain() empties the buffer
- Concurrent producers: every event drained exactly once
"""

import threading

from querytrace.contracts.enums import TelemetryEventKind
from querytrace.contracts.events import StructuredEvent
from querytrace.telemetry.buffer import EventBuffer


def _event(n: int) -> StructuredEvent:
    return StructuredEvent(event_type=TelemetryEventKind.SPARK_EGRESS, data={"n": n})


class TestEventBuffer:
    def test_starts_empty(self) -> None:
        buffer = EventBuffer()
        assert len(buffer) == 0
        assert buffer.drain() == []

    def test_drain_returns_recording_order(self) -> None:
        buffer = EventBuffer()
        for n in range(5):
            buffer.record(_event(n), timestamp_ms=1000 + n)

        drained = buffer.drain()

        assert [b.event.data for b in drained] == [{"n": n} for n in range(5)]
        assert [b.timestamp_ms for b in drained] == [1000, 1001, 1002, 1003, 1004]

    def test_drain_empties_buffer(self) -> None:
        buffer = EventBuffer()
        buffer.record(_event(1), timestamp_ms=1)

        assert len(buffer.drain()) == 1
        assert len(buffer) == 0
        assert buffer.drain() == []

    def test_drained_list_is_detached(self) -> None:
        buffer = EventBuffer()
        buffer.record(_event(1), timestamp_ms=1)
        drained = buffer.drain()

        buffer.record(_event(2), timestamp_ms=2)

        assert len(drained) == 1
        assert len(buffer) == 1


class TestEventBufferConcurrency:
    def test_concurrent_records_all_retained(self) -> None:
        buffer = EventBuffer()
        threads_count, per_thread = 8, 250

        def produce(offset: int) -> None:
            for n in range(per_thread):
                buffer.record(_event(offset * per_thread + n), timestamp_ms=n)

        threads = [threading.Thread(target=produce, args=(i,)) for i in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        drained = buffer.drain()
        assert sorted(b.event.data["n"] for b in drained) == list(range(threads_count * per_thread))  # type: ignore[index]

    def test_concurrent_drains_deliver_each_event_once(self) -> None:
        buffer = EventBuffer()
        total = 2000
        collected: list[int] = []
        collected_lock = threading.Lock()
        producing = threading.Event()
        producing.set()

        def produce() -> None:
            for n in range(total):
                buffer.record(_event(n), timestamp_ms=n)
            producing.clear()

        def consume() -> None:
            while producing.is_set() or len(buffer):
                batch = buffer.drain()
                with collected_lock:
                    collected.extend(b.event.data["n"] for b in batch)  # type: ignore[index]

        producer = threading.Thread(target=produce)
        consumers = [threading.Thread(target=consume) for _ in range(3)]
        producer.start()
        for consumer in consumers:
            consumer.start()
        producer.join()
        for consumer in consumers:
            consumer.join()
        collected.extend(b.event.data["n"] for b in buffer.drain())  # type: ignore[index]

        assert sorted(collected) == list(range(total))

"""
Unit tests for client.buffer module.

Tests:
- Batches delivered sorted by created_at, stable for equal timestamps
- One flush scheduled per window
- Sink errors isolated per event
- Events pushed from the sink land in the next batch
- close() flushes immediately
"""

import asyncio
import logging

import pytest

from relayfeed.client.buffer import DEFAULT_FLUSH_WINDOW, EventBuffer
from relayfeed.models import ProtocolEvent


@pytest.fixture
def delivered() -> list[ProtocolEvent]:
    return []


class TestOrdering:
    """Per-batch ordering."""

    async def test_sorted_by_created_at(self, delivered, make_event) -> None:
        buffer = EventBuffer(delivered.append)
        for ts in (30, 10, 20):
            buffer.push(make_event(created_at=ts))

        assert buffer.flush() == 3
        assert [e.created_at for e in delivered] == [10, 20, 30]

    async def test_equal_timestamps_keep_arrival_order(self, delivered, make_event) -> None:
        buffer = EventBuffer(delivered.append)
        events = [make_event(created_at=5, content=f"n{i}") for i in range(4)]
        for event in events:
            buffer.push(event)

        buffer.flush()
        assert delivered == events


class TestScheduling:
    """Debounced flushing."""

    def test_default_window(self) -> None:
        assert DEFAULT_FLUSH_WINDOW == 0.2

    async def test_flush_after_window(self, delivered, make_event) -> None:
        buffer = EventBuffer(delivered.append, flush_window=0.02)
        buffer.push(make_event(created_at=2))
        buffer.push(make_event(created_at=1))

        assert buffer.scheduled
        assert delivered == []

        await asyncio.sleep(0.06)

        assert [e.created_at for e in delivered] == [1, 2]
        assert not buffer.scheduled
        assert len(buffer) == 0

    async def test_single_timer_per_window(self, delivered, make_event) -> None:
        buffer = EventBuffer(delivered.append, flush_window=0.02)
        buffer.push(make_event())
        handle = buffer._handle
        buffer.push(make_event())

        assert buffer._handle is handle
        assert len(buffer) == 2
        buffer.close()

    async def test_empty_flush(self, delivered) -> None:
        assert EventBuffer(delivered.append).flush() == 0
        assert delivered == []


class TestSink:
    """Sink interaction."""

    async def test_sink_error_isolated(self, make_event, caplog) -> None:
        good: list[ProtocolEvent] = []

        def sink(event: ProtocolEvent) -> None:
            if event.content == "boom":
                raise RuntimeError("sink bug")
            good.append(event)

        buffer = EventBuffer(sink)
        buffer.push(make_event(created_at=1, content="boom"))
        buffer.push(make_event(created_at=2, content="fine"))

        with caplog.at_level(logging.ERROR):
            assert buffer.flush() == 2

        assert [e.content for e in good] == ["fine"]
        assert any(r.getMessage() == "sink_failed" for r in caplog.records)

    async def test_push_from_sink_goes_to_next_batch(self, make_event) -> None:
        seen: list[str] = []
        buffer: EventBuffer

        def sink(event: ProtocolEvent) -> None:
            seen.append(event.content)
            if event.content == "first":
                buffer.push(make_event(created_at=0, content="follow-up"))

        buffer = EventBuffer(sink, flush_window=0.02)
        buffer.push(make_event(created_at=1, content="first"))

        assert buffer.flush() == 1
        assert seen == ["first"]
        assert len(buffer) == 1
        assert buffer.scheduled

        buffer.close()
        assert seen == ["first", "follow-up"]


class TestClose:
    """close() delivers what remains."""

    async def test_close_flushes_and_cancels(self, delivered, make_event) -> None:
        buffer = EventBuffer(delivered.append, flush_window=10.0)
        buffer.push(make_event())

        buffer.close()

        assert len(delivered) == 1
        assert not buffer.scheduled

"""Debounced, time-ordered delivery of validated events to a sink."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from relayfeed.core.logger import Logger
from relayfeed.core.metrics import FLUSH_BATCH_SIZE
from relayfeed.models.event import ProtocolEvent  # noqa: TC001


DEFAULT_FLUSH_WINDOW = 0.2

EventSink = Callable[[ProtocolEvent], None]


class EventBuffer:
    """Collects events and delivers them in batches.

    The first ``push`` after a flush schedules the next flush
    ``flush_window`` seconds later; further pushes join the same batch.
    Each batch is delivered sorted by ``created_at`` (stable, so events with
    equal timestamps keep arrival order). Ordering across batches is not
    guaranteed.
    """

    def __init__(self, sink: EventSink, flush_window: float = DEFAULT_FLUSH_WINDOW) -> None:
        self._sink = sink
        self._flush_window = flush_window
        self._pending: list[ProtocolEvent] = []
        self._handle: asyncio.TimerHandle | None = None
        self._logger = Logger("buffer")

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def scheduled(self) -> bool:
        return self._handle is not None

    def push(self, event: ProtocolEvent) -> None:
        self._pending.append(event)
        if self._handle is None:
            loop = asyncio.get_running_loop()
            self._handle = loop.call_later(self._flush_window, self.flush)

    def flush(self) -> int:
        """Deliver everything pending now. Returns the number of events delivered.

        The pending list is swapped out before delivery, so events pushed
        from inside the sink land in the next batch.
        """
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        batch, self._pending = self._pending, []
        if not batch:
            return 0

        batch.sort(key=lambda event: event.created_at)
        for event in batch:
            try:
                self._sink(event)
            except Exception as e:  # sink error boundary
                self._logger.error("sink_failed", event_id=event.id, error=str(e))
        FLUSH_BATCH_SIZE.observe(len(batch))
        self._logger.debug("buffer_flushed", count=len(batch))
        return len(batch)

    def close(self) -> None:
        """Cancel the pending timer and deliver what remains."""
        self.flush()

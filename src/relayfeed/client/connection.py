"""One WebSocket connection to one relay, with automatic reconnection.

A [RelayConnection][relayfeed.client.connection.RelayConnection] owns a
single background task that opens the channel, starts a writer task draining
the per-connection outbox, and reads frames until the channel closes. Every
lifecycle change is reported to one listener as a typed event:

- [ConnectionOpened][relayfeed.client.connection.ConnectionOpened]
- [ConnectionClosed][relayfeed.client.connection.ConnectionClosed]
- [MessageReceived][relayfeed.client.connection.MessageReceived]

State machine:

```text
CLOSED --connect()--> CONNECTING --open ok--> OPEN
   ^                      |                     |
   |                  open failed          closed/error
   +----------------------+---------------------+
```

An unrequested close schedules exactly one reconnect after
``reconnect_delay`` seconds; ``close()`` cancels any pending reconnect and
never schedules a new one.

See Also:
    [RelayPool][relayfeed.client.pool.RelayPool]: Owns connections and
        dispatches their events.
    [open_channel][relayfeed.utils.transport.open_channel]: Default connector.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from relayfeed.core.logger import Logger
from relayfeed.core.metrics import RELAY_RECONNECTS, RELAYS_OPEN
from relayfeed.models.constants import ALLOWED_TRANSITIONS, ConnectionState
from relayfeed.models.relay import RelayEndpoint  # noqa: TC001
from relayfeed.nips.messages import encode_message
from relayfeed.utils.transport import Connector, WebSocketChannel, open_channel


DEFAULT_RECONNECT_DELAY = 5.0


# =============================================================================
# Connection events
# =============================================================================


@dataclass(frozen=True, slots=True)
class ConnectionOpened:
    url: str


@dataclass(frozen=True, slots=True)
class ConnectionClosed:
    """The connection left OPEN or CONNECTING.

    ``requested`` is True for ``close()`` (and for ``connect()`` replacing a
    live connection); False when the relay or transport dropped it.
    """

    url: str
    requested: bool


@dataclass(frozen=True, slots=True)
class MessageReceived:
    url: str
    data: str


ConnectionEvent = ConnectionOpened | ConnectionClosed | MessageReceived
ConnectionListener = Callable[[ConnectionEvent], None]


# =============================================================================
# Connection
# =============================================================================


class RelayConnection:
    """Reconnecting WebSocket connection to a single relay.

    Must be used from within a running event loop. ``send`` only queues;
    frames are written in order by the connection's writer task.

    Args:
        endpoint: Normalized relay endpoint.
        listener: Receives every connection event. Exceptions it raises are
            logged and do not affect the connection.
        connector: Async callable opening a channel for a URL.
        reconnect_delay: Seconds to wait before reconnecting after an
            unrequested close.
    """

    def __init__(
        self,
        endpoint: RelayEndpoint,
        listener: ConnectionListener,
        *,
        connector: Connector = open_channel,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ) -> None:
        self.endpoint = endpoint
        self._listener = listener
        self._connector = connector
        self._reconnect_delay = reconnect_delay
        self._logger = Logger("connection")

        self._state = ConnectionState.CLOSED
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._outbox: asyncio.Queue[str] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None

    def __repr__(self) -> str:
        return f"RelayConnection(url={self.url!r}, state={self._state.value})"

    @property
    def url(self) -> str:
        return self.endpoint.url

    @property
    def state(self) -> ConnectionState:
        return self._state

    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def connect(self) -> None:
        """Open a fresh channel, replacing any existing one.

        Never raises for connection failures: they are logged and follow the
        reconnect path.
        """
        loop = asyncio.get_running_loop()
        self._abort()
        self._set_state(ConnectionState.CONNECTING)
        self._task = loop.create_task(self._run(self._generation), name=f"relay:{self.url}")

    def send(self, message: list[Any]) -> bool:
        """Queue *message* as compact JSON if the connection is OPEN.

        Returns:
            True if queued, False if the connection is not OPEN.

        Raises:
            TypeError: If *message* is not JSON serializable.
            ValueError: If *message* contains NaN or circular references.
        """
        if self._state is not ConnectionState.OPEN or self._outbox is None:
            return False
        self._outbox.put_nowait(encode_message(message))
        return True

    def close(self) -> None:
        """Tear down the connection without scheduling a reconnect."""
        self._abort()

    async def wait_closed(self) -> None:
        """Wait for the background task to finish releasing the channel."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _abort(self) -> None:
        """Invalidate the current generation and move to CLOSED (requested)."""
        self._generation += 1
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._outbox = None
        if self._state is not ConnectionState.CLOSED:
            self._set_state(ConnectionState.CLOSED)
            self._logger.info("relay_closed", url=self.url)
            self._emit(ConnectionClosed(self.url, requested=True))

    async def _run(self, generation: int) -> None:
        try:
            channel = await self._connector(self.url)
        except Exception as e:  # connector is pluggable; every failure reconnects
            self._logger.warning("relay_connect_failed", url=self.url, error=str(e))
            self._on_lost(generation)
            return

        writer: asyncio.Task[None] | None = None
        try:
            if generation != self._generation:
                return
            outbox: asyncio.Queue[str] = asyncio.Queue()
            self._outbox = outbox
            self._set_state(ConnectionState.OPEN)
            writer = asyncio.create_task(self._write_loop(channel, outbox))
            self._logger.info("relay_connected", url=self.url)
            self._emit(ConnectionOpened(self.url))

            while (data := await channel.recv()) is not None:
                self._emit(MessageReceived(self.url, data))
            self._logger.info("relay_disconnected", url=self.url)
        except Exception as e:  # transport read boundary
            self._logger.warning("relay_read_failed", url=self.url, error=str(e))
        finally:
            if writer is not None:
                writer.cancel()
            self._on_lost(generation)
            await channel.close()

    async def _write_loop(self, channel: WebSocketChannel, outbox: asyncio.Queue[str]) -> None:
        try:
            while True:
                text = await outbox.get()
                await channel.send(text)
        except Exception as e:  # transport write boundary
            self._logger.warning("relay_write_failed", url=self.url, error=str(e))
            # closing unblocks the reader, which then takes the reconnect path
            await channel.close()

    def _on_lost(self, generation: int) -> None:
        """Handle an unrequested close of the current generation."""
        if generation != self._generation or self._state is ConnectionState.CLOSED:
            return
        self._outbox = None
        self._set_state(ConnectionState.CLOSED)
        self._emit(ConnectionClosed(self.url, requested=False))
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay, self._reconnect)
        RELAY_RECONNECTS.labels(url=self.url).inc()
        self._logger.debug("relay_reconnect_scheduled", url=self.url, delay=self._reconnect_delay)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        self.connect()

    def _set_state(self, new: ConnectionState) -> bool:
        old = self._state
        if (old, new) not in ALLOWED_TRANSITIONS:
            self._logger.warning(
                "invalid_state_transition", url=self.url, current=old.value, requested=new.value
            )
            return False
        self._state = new
        if new is ConnectionState.OPEN:
            RELAYS_OPEN.inc()
        elif old is ConnectionState.OPEN:
            RELAYS_OPEN.dec()
        return True

    def _emit(self, event: ConnectionEvent) -> None:
        try:
            self._listener(event)
        except Exception as e:  # listener error boundary
            self._logger.error(
                "connection_listener_failed", url=self.url, event=type(event).__name__, error=str(e)
            )

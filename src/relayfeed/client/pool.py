"""Set of relay connections keyed by normalized URL.

The [RelayPool][relayfeed.client.pool.RelayPool] exclusively owns its
[RelayConnection][relayfeed.client.connection.RelayConnection] objects and is
the single dispatcher of their events: every connection reports to the pool,
and the pool fans events out to its registered listeners.

Examples:
    ```python
    pool = RelayPool()
    pool.add_listener(on_event)
    pool.set_endpoints(["wss://yabu.me", "wss://r.kojira.io/"])
    sent = pool.broadcast(["CLOSE", "sub-1a2b3c4d"])
    await pool.shutdown()
    ```
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from relayfeed.core.logger import Logger
from relayfeed.models.relay import RelayEndpoint, normalize_url
from relayfeed.utils.transport import Connector, open_channel

from .connection import (
    DEFAULT_RECONNECT_DELAY,
    ConnectionEvent,
    ConnectionListener,
    RelayConnection,
)


class RelayPool:
    """Reconciling owner of relay connections.

    Args:
        connector: Channel factory handed to every connection.
        reconnect_delay: Reconnect delay handed to every connection.
    """

    def __init__(
        self,
        *,
        connector: Connector = open_channel,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
    ) -> None:
        self._connector = connector
        self._reconnect_delay = reconnect_delay
        self._connections: dict[str, RelayConnection] = {}
        self._listeners: list[ConnectionListener] = []
        self._logger = Logger("pool")

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        try:
            return normalize_url(url) in self._connections
        except ValueError:
            return False

    @property
    def urls(self) -> list[str]:
        return list(self._connections)

    @property
    def open_count(self) -> int:
        return sum(1 for conn in self._connections.values() if conn.is_open())

    def connection(self, url: str) -> RelayConnection | None:
        try:
            return self._connections.get(normalize_url(url))
        except ValueError:
            return None

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def set_endpoints(self, urls: Iterable[str]) -> None:
        """Reconcile the pool to exactly *urls*.

        Removed relays are closed, new relays are created and connected,
        unchanged relays are left alone. Invalid URLs are logged and skipped;
        URLs that normalize to the same endpoint collapse to one connection.
        """
        wanted: dict[str, RelayEndpoint] = {}
        for raw in urls:
            try:
                endpoint = RelayEndpoint(raw)
            except ValueError as e:
                self._logger.warning("relay_url_invalid", url=raw, error=str(e))
                continue
            wanted.setdefault(endpoint.url, endpoint)

        for url in [u for u in self._connections if u not in wanted]:
            self._connections.pop(url).close()
            self._logger.info("relay_removed", url=url)

        for url, endpoint in wanted.items():
            if url in self._connections:
                continue
            conn = RelayConnection(
                endpoint,
                self._dispatch,
                connector=self._connector,
                reconnect_delay=self._reconnect_delay,
            )
            self._connections[url] = conn
            self._logger.info("relay_added", url=url)
            conn.connect()

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    def broadcast(self, message: list[Any]) -> int:
        """Send *message* to every OPEN connection.

        Returns:
            Number of connections the message was queued on. Never raises.
        """
        sent = 0
        for conn in list(self._connections.values()):
            try:
                if conn.send(message):
                    sent += 1
            except (TypeError, ValueError) as e:
                self._logger.error("broadcast_encode_failed", url=conn.url, error=str(e))
        return sent

    def send(self, url: str, message: list[Any]) -> bool:
        """Send *message* to one relay; False if unknown, not OPEN or unencodable."""
        conn = self.connection(url)
        if conn is None:
            return False
        try:
            return conn.send(message)
        except (TypeError, ValueError) as e:
            self._logger.error("send_encode_failed", url=conn.url, error=str(e))
            return False

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def get_status(self, url: str) -> bool:
        """Return True if the relay at *url* is OPEN; unknown URLs are False."""
        conn = self.connection(url)
        return conn is not None and conn.is_open()

    def statuses(self) -> dict[str, bool]:
        return {url: conn.is_open() for url, conn in self._connections.items()}

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def add_listener(self, listener: ConnectionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ConnectionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _dispatch(self, event: ConnectionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:  # listener error boundary
                self._logger.error(
                    "pool_listener_failed",
                    url=event.url,
                    event=type(event).__name__,
                    error=str(e),
                )

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    def close_all(self) -> None:
        """Close every connection and empty the pool. No reconnects follow."""
        for conn in self._connections.values():
            conn.close()
        self._connections.clear()

    async def shutdown(self) -> None:
        """Close every connection and wait for their channels to be released."""
        connections = list(self._connections.values())
        self.close_all()
        for conn in connections:
            await conn.wait_closed()
        self._logger.info("pool_shutdown", relays=len(connections))

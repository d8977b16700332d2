"""WebSocket transport for relay connections, built on aiohttp.

A [RelayConnection][relayfeed.client.connection.RelayConnection] never talks
to aiohttp directly. It awaits a *connector* -- an async callable taking a URL
and returning a [WebSocketChannel][relayfeed.utils.transport.WebSocketChannel]
-- so the transport can be swapped for an in-memory fake in tests.

Attributes:
    WebSocketChannel: Protocol with ``send``, ``recv`` and ``close``.
    AiohttpChannel: Channel over an ``aiohttp.ClientWebSocketResponse``.
    open_channel: Default connector; opens an aiohttp session and WebSocket.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import ssl
from collections.abc import Awaitable, Callable
from typing import Final, Protocol

import aiohttp

from relayfeed.core.exceptions import ConnectivityError


DEFAULT_TIMEOUT: Final[float] = 10.0
DEFAULT_HEARTBEAT: Final[float] = 30.0

_WS_CLOSE_TIMEOUT = 5.0


logger = logging.getLogger(__name__)


class WebSocketChannel(Protocol):
    """Minimal text WebSocket used by a relay connection."""

    async def send(self, text: str) -> None: ...

    async def recv(self) -> str | None:
        """Return the next text frame, or ``None`` once the socket is closed."""
        ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[WebSocketChannel]]


class AiohttpChannel:
    """Text WebSocket channel over aiohttp.

    Owns both the WebSocket and its ``ClientSession``; ``close()`` releases
    both with timeouts so teardown never hangs on an unresponsive relay.
    """

    def __init__(
        self,
        ws: aiohttp.ClientWebSocketResponse,
        session: aiohttp.ClientSession,
        close_timeout: float = _WS_CLOSE_TIMEOUT,
    ) -> None:
        self._ws = ws
        self._session = session
        self._close_timeout = close_timeout

    async def send(self, text: str) -> None:
        """Write one text frame.

        Raises:
            ConnectionResetError: If the socket is already closing.
            aiohttp.ClientError: On transport failures.
        """
        await self._ws.send_str(text)

    async def recv(self) -> str | None:
        """Receive the next text frame.

        Binary frames are decoded as UTF-8 with replacement characters.
        Ping/pong frames are answered by aiohttp and never surface here.

        Returns:
            The frame text, or ``None`` if the connection closed or errored.
        """
        while True:
            msg = await self._ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                return str(msg.data)
            if msg.type == aiohttp.WSMsgType.BINARY:
                return bytes(msg.data).decode("utf-8", errors="replace")
            if msg.type in (aiohttp.WSMsgType.PING, aiohttp.WSMsgType.PONG):
                continue
            # CLOSE, CLOSING, CLOSED, ERROR -> connection terminated
            if msg.type == aiohttp.WSMsgType.ERROR:
                logger.debug("ws_error error=%s", self._ws.exception())
            return None

    async def close(self) -> None:
        """Close the WebSocket and session, ignoring teardown errors."""
        # aiohttp can raise ClientError, ServerDisconnectedError, etc. during
        # close; teardown must not propagate them.
        with contextlib.suppress(Exception):
            await asyncio.wait_for(self._ws.close(), timeout=self._close_timeout)
        with contextlib.suppress(Exception):
            await asyncio.wait_for(self._session.close(), timeout=self._close_timeout)


async def open_channel(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    heartbeat: float | None = DEFAULT_HEARTBEAT,
) -> AiohttpChannel:
    """Open a WebSocket to *url* and wrap it in an [AiohttpChannel][relayfeed.utils.transport.AiohttpChannel].

    Args:
        url: ``ws://`` or ``wss://`` relay URL.
        timeout: Handshake timeout in seconds.
        heartbeat: Interval for aiohttp's automatic ping; ``None`` disables it.

    Raises:
        ConnectivityError: On DNS, TCP, TLS, HTTP upgrade or timeout failures.
        asyncio.CancelledError: If cancelled while connecting.
    """
    session = aiohttp.ClientSession()
    try:
        ws = await asyncio.wait_for(session.ws_connect(url, heartbeat=heartbeat), timeout=timeout)
    except asyncio.CancelledError:
        await session.close()
        raise
    except TimeoutError:
        await session.close()
        raise ConnectivityError(f"Connection timeout: {url}") from None
    except (aiohttp.ClientError, ssl.SSLError, OSError, ValueError) as e:
        await session.close()
        raise ConnectivityError(f"Connection failed: {url} ({e})") from e

    return AiohttpChannel(ws, session)

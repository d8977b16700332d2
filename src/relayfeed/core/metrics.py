"""
Prometheus metrics collection and HTTP exposition.

Defines module-level metric objects shared by the client components. The
connection pool, subscription manager, event buffer and publisher record into
them directly; nothing here requires the HTTP endpoint to be running.

The ``MetricsServer`` provides an async HTTP endpoint (via aiohttp) for
Prometheus scraping, configured through ``MetricsConfig``.

Architecture:
    RELAYS_OPEN:            Gauge of relay connections currently OPEN.
    RELAY_RECONNECTS:       Reconnect attempts scheduled, per relay URL.
    EVENTS_RECEIVED:        Inbound EVENT messages by outcome
                            (delivered, duplicate, stale, rejected, kind,
                            malformed).
    MESSAGES_SENT:          Outbound messages by type (REQ, EVENT, CLOSE).
    PUBLISH_RESULTS:        Publish attempts by result.
    FLUSH_BATCH_SIZE:       Histogram of events delivered per buffer flush.
"""

from __future__ import annotations

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class MetricsConfig(BaseModel):
    """Configuration for the Prometheus metrics endpoint.

    The endpoint is only started when ``enabled`` is True.
    """

    enabled: bool = Field(default=False, description="Expose the /metrics endpoint")
    port: int = Field(default=8000, ge=1024, le=65535, description="Metrics HTTP port")
    host: str = Field(default="127.0.0.1", description="Metrics HTTP bind address")
    path: str = Field(default="/metrics", description="Metrics endpoint path")


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

RELAYS_OPEN = Gauge(
    "relayfeed_relays_open",
    "Relay connections currently open",
)

RELAY_RECONNECTS = Counter(
    "relayfeed_relay_reconnects",
    "Reconnect attempts scheduled after an unrequested close",
    ["url"],
)

EVENTS_RECEIVED = Counter(
    "relayfeed_events_received",
    "Inbound EVENT messages by outcome",
    ["outcome"],
)

MESSAGES_SENT = Counter(
    "relayfeed_messages_sent",
    "Outbound protocol messages by type",
    ["type"],
)

PUBLISH_RESULTS = Counter(
    "relayfeed_publish_results",
    "Publish attempts by result",
    ["result"],
)

FLUSH_BATCH_SIZE = Histogram(
    "relayfeed_flush_batch_size",
    "Events delivered per buffer flush",
    buckets=(1, 2, 5, 10, 20, 50, 100, 250),
)


# ---------------------------------------------------------------------------
# HTTP Server
# ---------------------------------------------------------------------------


class MetricsServer:
    """Async HTTP server exposing a Prometheus-compatible /metrics endpoint.

    Example:
        server = MetricsServer(MetricsConfig(enabled=True, port=8001))
        await server.start()
        # ... timeline runs ...
        await server.stop()
    """

    def __init__(self, config: MetricsConfig) -> None:
        self._config = config
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start listening for scrape requests; no-op when disabled.

        Raises:
            OSError: If the port is already in use or binding fails.
        """
        if not self._config.enabled:
            return

        app = web.Application()
        app.router.add_get(self._config.path, self._handle_metrics)

        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()

        site = web.TCPSite(self._runner, self._config.host, self._config.port)
        await site.start()

    async def stop(self) -> None:
        """Stop the HTTP server. Idempotent."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    @staticmethod
    async def _handle_metrics(_request: web.Request) -> web.Response:
        return web.Response(
            body=generate_latest(),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )


"""Composition root wiring the client components into a running timeline.

Examples:
    ```python
    async with Timeline.from_yaml("config/timeline.yaml", sink=print) as timeline:
        await timeline.post("hello nostr")
        await asyncio.sleep(60)
    ```
"""

from __future__ import annotations

import asyncio
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any

from relayfeed.core.exceptions import ValidationRejected
from relayfeed.core.logger import Logger
from relayfeed.core.metrics import MetricsServer
from relayfeed.core.yaml import load_yaml
from relayfeed.models.constants import EventKind
from relayfeed.utils.transport import Connector, open_channel

from .buffer import EventBuffer, EventSink
from .configs import TimelineConfig
from .connection import ConnectionClosed, ConnectionEvent, ConnectionOpened
from .pool import RelayPool
from .publisher import Publisher
from .subscription import SubscriptionManager
from .validator import ContentValidator, WordList, load_default_words


if TYPE_CHECKING:
    from relayfeed.models.event import ProtocolEvent
    from relayfeed.models.filter import SubscriptionFilter

    from .signer import Signer


class Timeline:
    """A live, moderated, multi-relay feed with publishing.

    Entering the async context loads the default wordlist, connects to the
    configured relays and starts the subscription. Exiting stops the
    subscription, flushes buffered events and closes every connection.
    """

    def __init__(
        self,
        config: TimelineConfig,
        sink: EventSink,
        signer: Signer | None = None,
        connector: Connector | None = None,
    ) -> None:
        self.config = config
        self._logger = Logger("timeline")

        if connector is None:
            connector = partial(open_channel, timeout=config.connection.timeout)

        self.words = WordList(user_words=config.content.user_words)
        self.validator = ContentValidator(self.words, config.content.max_length)
        self.pool = RelayPool(
            connector=connector,
            reconnect_delay=config.connection.reconnect_delay,
        )
        self.buffer = EventBuffer(sink, config.buffer.flush_window)
        self.subscriptions = SubscriptionManager(
            self.pool, self.validator, self.buffer, config.subscription
        )
        self.publisher = Publisher(
            self.pool, self.subscriptions, self.validator, sink=sink, signer=signer
        )

        self._relay_opened = asyncio.Event()
        self.pool.add_listener(self.subscriptions.on_connection_event)
        self.pool.add_listener(self._on_connection_event)
        self.subscriptions.add_ack_handler(self.publisher.record_ack)
        self._metrics_server = MetricsServer(config.metrics)

    def _on_connection_event(self, event: ConnectionEvent) -> None:
        if isinstance(event, ConnectionOpened):
            self._relay_opened.set()
        elif isinstance(event, ConnectionClosed) and self.pool.open_count == 0:
            self._relay_opened.clear()

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, config_path: str | Path, sink: EventSink, **kwargs: Any) -> Timeline:
        """Create a timeline from a YAML configuration file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the document is not a mapping.
            pydantic.ValidationError: If the values are invalid.
        """
        return cls.from_dict(load_yaml(config_path), sink, **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any], sink: EventSink, **kwargs: Any) -> Timeline:
        return cls(TimelineConfig.model_validate(data), sink, **kwargs)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Timeline:
        await self.start()
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.stop()

    async def start(self, filter: SubscriptionFilter | None = None) -> str:  # noqa: A002
        """Load moderation words, connect to relays and subscribe."""
        await self._metrics_server.start()
        source = self.config.content.wordlist_source
        if source:
            self.words.set_default(
                await load_default_words(source, timeout=self.config.content.wordlist_timeout)
            )
        self.pool.set_endpoints(self.config.relays.urls)
        sub_id = self.subscriptions.start(filter)
        self._logger.info("timeline_started", relays=len(self.pool), sub_id=sub_id)
        return sub_id

    async def stop(self) -> None:
        self.subscriptions.stop()
        self.buffer.close()
        await self.pool.shutdown()
        await self._metrics_server.stop()
        self._logger.info("timeline_stopped")

    def resubscribe(self, filter: SubscriptionFilter | None = None) -> str:  # noqa: A002
        return self.subscriptions.start(filter)

    async def wait_for_relay(self, timeout: float) -> bool:  # noqa: ASYNC109
        """Wait until at least one relay is open. Returns False on timeout."""
        if self.pool.open_count:
            return True
        try:
            await asyncio.wait_for(self._relay_opened.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    # -------------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------------

    async def post(self, content: str) -> ProtocolEvent:
        """Publish a text note.

        Raises:
            ValidationRejected: If *content* is empty or whitespace-only, too
                long, or contains a blocked word.
            PublishingError: For the other publish failures.
        """
        if not content.strip():
            raise ValidationRejected("content is empty")
        return await self.publisher.publish(EventKind.TEXT_NOTE, content)

    async def react(self, target: ProtocolEvent, content: str = "+") -> ProtocolEvent | None:
        return await self.publisher.react(target, content)

    # -------------------------------------------------------------------------
    # Relays and moderation
    # -------------------------------------------------------------------------

    def set_relays(self, urls: list[str]) -> None:
        """Replace the relay set; surviving connections are kept as they are."""
        self.config.relays.urls = list(urls)
        self.pool.set_endpoints(urls)

    def relay_statuses(self) -> dict[str, bool]:
        return self.pool.statuses()

    def add_blocked_word(self, word: str) -> bool:
        return self.words.add(word)

    def remove_blocked_word(self, word: str) -> bool:
        return self.words.remove(word)

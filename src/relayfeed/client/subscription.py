"""Subscription lifecycle and inbound event filtering.

The [SubscriptionManager][relayfeed.client.subscription.SubscriptionManager]
runs one subscription at a time against every relay in the pool. Inbound
``EVENT`` messages pass through four gates before reaching the buffer:

1. the subscription id must be the current one (stale ids are dropped);
2. the event id must be new for this subscription (duplicates are dropped);
3. the event kind must be one the filter asked for;
4. the content must pass the
   [ContentValidator][relayfeed.client.validator.ContentValidator].

An event id is recorded as seen before the kind and content checks, so a
rejected event arriving again from another relay is not re-validated.

Starting a new subscription closes the previous one on every relay and
discards its seen set. Connections that open after ``start()`` (late joiners
and reconnects) are sent the current ``REQ`` with the stored filter.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable

from relayfeed.core.exceptions import ProtocolError
from relayfeed.core.logger import Logger
from relayfeed.core.metrics import EVENTS_RECEIVED, MESSAGES_SENT
from relayfeed.models.event import ProtocolEvent  # noqa: TC001
from relayfeed.models.filter import Subscription, SubscriptionFilter
from relayfeed.nips.messages import (
    ClosedMessage,
    EoseMessage,
    EventMessage,
    NoticeMessage,
    OkMessage,
    close_message,
    parse_relay_message,
    req_message,
)

from .buffer import EventBuffer  # noqa: TC001
from .configs import SubscriptionConfig
from .connection import ConnectionEvent, ConnectionOpened, MessageReceived
from .pool import RelayPool  # noqa: TC001
from .validator import ContentValidator  # noqa: TC001


AckHandler = Callable[[str, OkMessage], None]


def new_subscription_id() -> str:
    """Return a random id of the form ``sub-`` followed by 8 hex digits."""
    return f"sub-{secrets.token_hex(4)}"


class SubscriptionManager:
    """Owns the active subscription, its seen set, and inbound filtering.

    Args:
        pool: Relay pool to send ``REQ``/``CLOSE`` through.
        validator: Content validator applied to every inbound event.
        buffer: Destination for accepted events.
        config: Source of the default filter.
    """

    def __init__(
        self,
        pool: RelayPool,
        validator: ContentValidator,
        buffer: EventBuffer,
        config: SubscriptionConfig | None = None,
    ) -> None:
        self._pool = pool
        self._validator = validator
        self._buffer = buffer
        self._config = config or SubscriptionConfig()
        self._subscription: Subscription | None = None
        self._seen: set[str] = set()
        self._ack_handlers: list[AckHandler] = []
        self._logger = Logger("subscription")

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    @property
    def subscription_id(self) -> str | None:
        return self._subscription.id if self._subscription else None

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def default_filter(self) -> SubscriptionFilter:
        return SubscriptionFilter.recent(
            self._config.kinds,
            limit=self._config.limit,
            since_seconds_ago=self._config.since_seconds_ago,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, filter: SubscriptionFilter | None = None) -> str:  # noqa: A002
        """Start a new subscription and return its id.

        Closes the previous subscription on every relay, discards its seen
        set, and broadcasts ``REQ`` to every open relay.
        """
        if self._subscription is not None:
            self._send_close(self._subscription.id)

        subscription = Subscription(
            id=new_subscription_id(), filter=filter or self.default_filter()
        )
        self._subscription = subscription
        self._seen = set()

        sent = self._pool.broadcast(req_message(subscription))
        MESSAGES_SENT.labels(type="REQ").inc(sent)
        self._logger.info(
            "subscription_started",
            sub_id=subscription.id,
            kinds=list(subscription.filter.kinds),
            limit=subscription.filter.limit,
            since=subscription.filter.since,
            relays=sent,
        )
        return subscription.id

    def stop(self) -> None:
        """Close the active subscription on every relay; no-op when idle."""
        if self._subscription is None:
            return
        sub_id = self._subscription.id
        self._send_close(sub_id)
        self._subscription = None
        self._seen = set()
        self._logger.info("subscription_stopped", sub_id=sub_id)

    def _send_close(self, sub_id: str) -> None:
        sent = self._pool.broadcast(close_message(sub_id))
        MESSAGES_SENT.labels(type="CLOSE").inc(sent)

    def mark_seen(self, event_id: str) -> None:
        """Record *event_id* so a relay echo of it is dropped as a duplicate."""
        self._seen.add(event_id)

    def add_ack_handler(self, handler: AckHandler) -> None:
        self._ack_handlers.append(handler)

    # -------------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------------

    def on_connection_event(self, event: ConnectionEvent) -> None:
        """Pool listener: replay ``REQ`` on open and route inbound frames."""
        if isinstance(event, ConnectionOpened):
            if self._subscription is not None and self._pool.send(
                event.url, req_message(self._subscription)
            ):
                MESSAGES_SENT.labels(type="REQ").inc()
                self._logger.debug(
                    "subscription_replayed", url=event.url, sub_id=self._subscription.id
                )
        elif isinstance(event, MessageReceived):
            self.handle_incoming(event.url, event.data)

    def handle_incoming(self, url: str, raw: str) -> bool:
        """Process one inbound frame. Returns True if an event was buffered.

        Never raises: malformed frames are logged and dropped.
        """
        try:
            message = parse_relay_message(raw)
        except ProtocolError as e:
            EVENTS_RECEIVED.labels(outcome="malformed").inc()
            self._logger.warning("relay_message_malformed", url=url, error=str(e))
            return False

        if isinstance(message, EventMessage):
            return self._handle_event(url, message)
        if isinstance(message, OkMessage):
            self._dispatch_ack(url, message)
        elif isinstance(message, EoseMessage):
            self._logger.debug("relay_eose", url=url, sub_id=message.subscription_id)
        elif isinstance(message, NoticeMessage):
            self._logger.info("relay_notice", url=url, message=message.message)
        elif isinstance(message, ClosedMessage):
            self._logger.warning(
                "relay_closed_subscription",
                url=url,
                sub_id=message.subscription_id,
                message=message.message,
            )
        return False

    def _handle_event(self, url: str, message: EventMessage) -> bool:
        subscription = self._subscription
        if subscription is None or message.subscription_id != subscription.id:
            EVENTS_RECEIVED.labels(outcome="stale").inc()
            return False

        event: ProtocolEvent = message.event
        if event.id in self._seen:
            EVENTS_RECEIVED.labels(outcome="duplicate").inc()
            return False
        self._seen.add(event.id)

        if event.kind not in subscription.filter.kinds:
            EVENTS_RECEIVED.labels(outcome="kind").inc()
            self._logger.debug("event_kind_unrequested", url=url, event_id=event.id, kind=event.kind)
            return False

        if self._validator.is_invalid(event.content):
            EVENTS_RECEIVED.labels(outcome="rejected").inc()
            self._logger.debug("event_rejected", url=url, event_id=event.id)
            return False

        self._buffer.push(event)
        EVENTS_RECEIVED.labels(outcome="delivered").inc()
        return True

    def _dispatch_ack(self, url: str, ok: OkMessage) -> None:
        for handler in list(self._ack_handlers):
            try:
                handler(url, ok)
            except Exception as e:  # ack handler error boundary
                self._logger.error("ack_handler_failed", url=url, event_id=ok.event_id, error=str(e))

"""Frozen dataclasses with zero I/O for relays, events, filters, and receipts.

The models layer sits at the bottom of the package: it depends only on the
standard library and ``rfc3986``. Every model uses
``@dataclass(frozen=True, slots=True)`` and validates in ``__post_init__`` so
invalid instances never escape the constructor.

Attributes:
    RelayEndpoint: Normalized ``ws``/``wss`` relay URL; equality is by
        normalized URL.
    ProtocolEvent: Shape-validated Nostr event; ``id`` is the dedup key.
    SubscriptionFilter: ``kinds``/``limit``/``since`` query sent with a REQ.
    Subscription: Client-chosen subscription id plus its filter.
    PublishReceipt: Per-event send count and OK answers.
    EventKind: Supported event kinds (0, 1, 7).
    ConnectionState: CONNECTING / OPEN / CLOSED.
"""

from .constants import (
    ALLOWED_TRANSITIONS,
    EVENT_KIND_MAX,
    SUPPORTED_KINDS,
    ConnectionState,
    EventKind,
)
from .event import ProtocolEvent
from .filter import Subscription, SubscriptionFilter
from .receipt import PublishReceipt
from .relay import RelayEndpoint, normalize_url


__all__ = [
    "ALLOWED_TRANSITIONS",
    "EVENT_KIND_MAX",
    "SUPPORTED_KINDS",
    "ConnectionState",
    "EventKind",
    "ProtocolEvent",
    "PublishReceipt",
    "RelayEndpoint",
    "Subscription",
    "SubscriptionFilter",
    "normalize_url",
]

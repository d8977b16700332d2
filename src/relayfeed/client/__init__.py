"""Client layer: relay connections, subscription, buffering and publishing.

Components, leaves first:

- [ContentValidator][relayfeed.client.validator.ContentValidator] and
  [WordList][relayfeed.client.validator.WordList]
- [RelayConnection][relayfeed.client.connection.RelayConnection]
- [RelayPool][relayfeed.client.pool.RelayPool]
- [EventBuffer][relayfeed.client.buffer.EventBuffer]
- [SubscriptionManager][relayfeed.client.subscription.SubscriptionManager]
- [Publisher][relayfeed.client.publisher.Publisher]
- [Timeline][relayfeed.client.timeline.Timeline], the composition root
"""

from .buffer import EventBuffer, EventSink
from .configs import (
    DEFAULT_RELAYS,
    BufferConfig,
    ConnectionConfig,
    ContentConfig,
    RelaysConfig,
    SubscriptionConfig,
    TimelineConfig,
)
from .connection import (
    ConnectionClosed,
    ConnectionEvent,
    ConnectionOpened,
    MessageReceived,
    RelayConnection,
)
from .pool import RelayPool
from .publisher import Publisher
from .signer import Signer
from .subscription import SubscriptionManager, new_subscription_id
from .timeline import Timeline
from .validator import ContentValidator, WordList, is_invalid, load_default_words


__all__ = [
    "DEFAULT_RELAYS",
    "BufferConfig",
    "ConnectionClosed",
    "ConnectionConfig",
    "ConnectionEvent",
    "ConnectionOpened",
    "ContentConfig",
    "ContentValidator",
    "EventBuffer",
    "EventSink",
    "MessageReceived",
    "Publisher",
    "RelayConnection",
    "RelayPool",
    "RelaysConfig",
    "Signer",
    "SubscriptionConfig",
    "SubscriptionManager",
    "Timeline",
    "TimelineConfig",
    "WordList",
    "is_invalid",
    "load_default_words",
    "new_subscription_id",
]

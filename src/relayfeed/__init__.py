r"""relayfeed -- Multi-relay Nostr timeline client core.

Connects to a set of Nostr relays over WebSocket, runs one filtered
subscription against all of them, deduplicates and moderates incoming events,
delivers them in time-ordered batches, and broadcasts signed events back.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              client           Connections, subscription, buffering, publishing
             /   |   \
          core  nips  utils    Logging/errors/metrics, wire codec, transport/keys
             \   |   /
              models           Pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from relayfeed import Timeline``) use lazy loading
    and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("relayfeed")

__all__ = [
    "ContentValidator",
    "EventBuffer",
    "KeysSigner",
    "Logger",
    "ProtocolEvent",
    "Publisher",
    "RelayConnection",
    "RelayEndpoint",
    "RelayPool",
    "Signer",
    "SubscriptionFilter",
    "SubscriptionManager",
    "Timeline",
    "TimelineConfig",
    "WordList",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "ContentValidator": ("relayfeed.client", "ContentValidator"),
    "EventBuffer": ("relayfeed.client", "EventBuffer"),
    "KeysSigner": ("relayfeed.utils.keys", "KeysSigner"),
    "Logger": ("relayfeed.core", "Logger"),
    "ProtocolEvent": ("relayfeed.models", "ProtocolEvent"),
    "Publisher": ("relayfeed.client", "Publisher"),
    "RelayConnection": ("relayfeed.client", "RelayConnection"),
    "RelayEndpoint": ("relayfeed.models", "RelayEndpoint"),
    "RelayPool": ("relayfeed.client", "RelayPool"),
    "Signer": ("relayfeed.client", "Signer"),
    "SubscriptionFilter": ("relayfeed.models", "SubscriptionFilter"),
    "SubscriptionManager": ("relayfeed.client", "SubscriptionManager"),
    "Timeline": ("relayfeed.client", "Timeline"),
    "TimelineConfig": ("relayfeed.client", "TimelineConfig"),
    "WordList": ("relayfeed.client", "WordList"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'relayfeed' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__

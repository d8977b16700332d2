"""relayfeed exception hierarchy.

Typed exceptions separate failures that are recovered locally inside the
event loop (connectivity, protocol parsing) from failures that must reach the
caller of a publish operation.

Exception hierarchy:

```text
RelayfeedError (base -- never raised directly)
├── ConfigurationError       -- config validation, missing keys, bad YAML
├── ConnectivityError        -- relay socket construction/open failure
├── ProtocolError            -- wire message or event shape violations
│   └── ProtocolParseError   -- malformed inbound JSON
└── PublishingError          -- a publish attempt failed for the caller
    ├── ValidationRejected   -- content failed moderation/length checks
    ├── NoOpenRelay          -- the EVENT reached zero relays
    ├── SignerUnavailable    -- no signer capability configured
    └── SignerError          -- the signer returned an unusable event
```

Note:
    ``ConnectivityError`` and ``ProtocolParseError`` are logged and swallowed
    at the event-loop boundary
    ([RelayConnection][relayfeed.client.connection.RelayConnection],
    [SubscriptionManager][relayfeed.client.subscription.SubscriptionManager]).
    Only [PublishingError][relayfeed.core.exceptions.PublishingError]
    subclasses are raised to callers, by
    [Publisher.publish()][relayfeed.client.publisher.Publisher.publish].
"""

from __future__ import annotations


class RelayfeedError(Exception):
    """Base exception for all relayfeed errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(RelayfeedError):
    """Invalid or missing configuration (YAML, env vars, CLI flags)."""


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(RelayfeedError):
    """A relay WebSocket could not be constructed or opened.

    Recovered locally: the connection logs it and follows the standard
    reconnect path. Never surfaced to publish callers.
    """


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(RelayfeedError):
    """A wire message or event does not match the expected shape."""


class ProtocolParseError(ProtocolError):
    """An inbound relay message is not valid JSON or not a JSON array.

    The message is dropped and logged.
    """


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


class PublishingError(RelayfeedError):
    """Base for failures surfaced to the caller of a publish operation."""


class ValidationRejected(PublishingError):
    """Outbound content is empty, too long, or contains a blocked word.

    Raised before any signer or network activity.
    """


class NoOpenRelay(PublishingError):
    """The signed EVENT was sent to zero relays.

    A post that reaches nobody is a failure of that publish attempt only.
    """


class SignerUnavailable(PublishingError):
    """No signer capability is configured.

    Raised immediately, before any network activity.
    """


class SignerError(PublishingError):
    """The signer returned an event that failed validation."""

"""Shared constants for the models layer.

Defines the enumerations used across the client: the event kinds a timeline
subscribes to and publishes, and the lifecycle states of a relay connection.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class EventKind(IntEnum):
    """Nostr event kinds handled by the timeline.

    Attributes:
        SET_METADATA: Kind 0 -- user profile metadata (NIP-01).
        TEXT_NOTE: Kind 1 -- short text note (NIP-01).
        REACTION: Kind 7 -- reaction to another event (NIP-25).
    """

    SET_METADATA = 0
    TEXT_NOTE = 1
    REACTION = 7


EVENT_KIND_MAX = 65_535

SUPPORTED_KINDS: frozenset[int] = frozenset(EventKind)


class ConnectionState(StrEnum):
    """Lifecycle state of a single relay connection.

    Allowed transitions are CONNECTING -> OPEN, OPEN -> CLOSED,
    CONNECTING -> CLOSED and CLOSED -> CONNECTING. A connection never goes
    from OPEN back to CONNECTING without passing through CLOSED.

    Attributes:
        CONNECTING: The WebSocket handshake is in progress.
        OPEN: The socket is usable; ``send`` writes to it.
        CLOSED: No socket. Initial state, and the state after any close.
    """

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


ALLOWED_TRANSITIONS: frozenset[tuple[ConnectionState, ConnectionState]] = frozenset(
    {
        (ConnectionState.CONNECTING, ConnectionState.OPEN),
        (ConnectionState.OPEN, ConnectionState.CLOSED),
        (ConnectionState.CONNECTING, ConnectionState.CLOSED),
        (ConnectionState.CLOSED, ConnectionState.CONNECTING),
    }
)

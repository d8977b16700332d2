"""Nostr protocol pieces: NIP-01 wire messages and event envelope builders.

Depends on [relayfeed.models][relayfeed.models] and the exception types in
[relayfeed.core.exceptions][relayfeed.core.exceptions]. Pure functions, no I/O.

Attributes:
    parse_relay_message: Decode an inbound frame into ``EventMessage``,
        ``OkMessage``, ``EoseMessage``, ``NoticeMessage`` or ``ClosedMessage``.
    encode_message: Compact JSON serialization for outbound messages.
    build_text_note, build_reaction: Unsigned envelopes for kinds 1 and 7.
"""

from .event_builders import build_reaction, build_text_note, build_unsigned, reaction_tags
from .messages import (
    ClosedMessage,
    EoseMessage,
    EventMessage,
    NoticeMessage,
    OkMessage,
    RelayMessage,
    close_message,
    encode_message,
    event_message,
    parse_relay_message,
    req_message,
)


__all__ = [
    "ClosedMessage",
    "EoseMessage",
    "EventMessage",
    "NoticeMessage",
    "OkMessage",
    "RelayMessage",
    "build_reaction",
    "build_text_note",
    "build_unsigned",
    "close_message",
    "encode_message",
    "event_message",
    "parse_relay_message",
    "reaction_tags",
    "req_message",
]

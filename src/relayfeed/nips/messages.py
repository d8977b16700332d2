"""NIP-01 wire messages exchanged between the client and relays.

Outbound messages are plain JSON arrays built by ``req_message``,
``event_message`` and ``close_message`` and serialized by
``encode_message``. Inbound text frames are decoded by
``parse_relay_message`` into typed message objects.

Wire format:

```text
client -> relay   ["REQ", <sub_id>, {"kinds": [...], "limit": n, "since": ts}]
client -> relay   ["EVENT", <event>]
client -> relay   ["CLOSE", <sub_id>]
relay -> client   ["EVENT", <sub_id>, <event>]
relay -> client   ["OK", <event_id>, <true|false>, <message>]
relay -> client   ["EOSE", <sub_id>]
relay -> client   ["NOTICE", <message>]
relay -> client   ["CLOSED", <sub_id>, <message>]
```
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from relayfeed.core.exceptions import ProtocolError, ProtocolParseError
from relayfeed.models.event import ProtocolEvent
from relayfeed.models.filter import Subscription  # noqa: TC001


# =============================================================================
# Inbound message types
# =============================================================================


@dataclass(frozen=True, slots=True)
class EventMessage:
    """``["EVENT", sub_id, event]`` -- an event matching a subscription."""

    subscription_id: str
    event: ProtocolEvent


@dataclass(frozen=True, slots=True)
class OkMessage:
    """``["OK", event_id, accepted, message]`` -- a relay's answer to a publish."""

    event_id: str
    accepted: bool
    message: str = ""


@dataclass(frozen=True, slots=True)
class EoseMessage:
    """``["EOSE", sub_id]`` -- end of stored events for a subscription."""

    subscription_id: str


@dataclass(frozen=True, slots=True)
class NoticeMessage:
    """``["NOTICE", message]`` -- human-readable relay notice."""

    message: str


@dataclass(frozen=True, slots=True)
class ClosedMessage:
    """``["CLOSED", sub_id, message]`` -- the relay ended a subscription."""

    subscription_id: str
    message: str = ""


RelayMessage = EventMessage | OkMessage | EoseMessage | NoticeMessage | ClosedMessage


# =============================================================================
# Outbound messages
# =============================================================================


def req_message(subscription: Subscription) -> list[Any]:
    """Build ``["REQ", sub_id, filter]`` for *subscription*."""
    return ["REQ", subscription.id, subscription.filter.to_dict()]


def event_message(event: ProtocolEvent) -> list[Any]:
    """Build ``["EVENT", event]`` for publishing a signed event."""
    return ["EVENT", event.to_dict()]


def close_message(subscription_id: str) -> list[Any]:
    """Build ``["CLOSE", sub_id]``."""
    return ["CLOSE", subscription_id]


def encode_message(message: list[Any]) -> str:
    """Serialize an outbound message as compact, newline-free JSON.

    Raises:
        TypeError: If the message contains values JSON cannot represent.
        ValueError: If the message contains NaN/Infinity or circular references.
    """
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


# =============================================================================
# Inbound parsing
# =============================================================================


def _require_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ProtocolError(f"{what} must be a string, got {type(value).__name__}")
    return value


def parse_relay_message(raw: str | bytes) -> RelayMessage | None:
    """Decode one inbound text frame into a typed message.

    Message types this client does not act on (``AUTH``, ``COUNT``, ...)
    return ``None``.

    Raises:
        ProtocolParseError: If *raw* is not valid JSON or not a non-empty
            JSON array with a string type tag.
        ProtocolError: If a known message type has the wrong shape, including
            an ``EVENT`` whose event object fails validation.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolParseError(f"invalid JSON: {e}") from e

    if not isinstance(data, list) or not data or not isinstance(data[0], str):
        raise ProtocolParseError("relay message must be a JSON array starting with a type")

    kind, args = data[0], data[1:]

    if kind == "EVENT":
        if len(args) < 2:  # noqa: PLR2004
            raise ProtocolError("EVENT message requires a subscription id and an event")
        sub_id = _require_str(args[0], "EVENT subscription id")
        try:
            event = ProtocolEvent.from_dict(args[1])
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"malformed event: {e}") from e
        return EventMessage(subscription_id=sub_id, event=event)

    if kind == "OK":
        if len(args) < 2 or not isinstance(args[1], bool):  # noqa: PLR2004
            raise ProtocolError("OK message requires an event id and a boolean")
        event_id = _require_str(args[0], "OK event id")
        message = args[2] if len(args) > 2 and isinstance(args[2], str) else ""  # noqa: PLR2004
        return OkMessage(event_id=event_id, accepted=args[1], message=message)

    if kind == "EOSE":
        if not args:
            raise ProtocolError("EOSE message requires a subscription id")
        return EoseMessage(subscription_id=_require_str(args[0], "EOSE subscription id"))

    if kind == "NOTICE":
        return NoticeMessage(message=str(args[0]) if args else "")

    if kind == "CLOSED":
        if not args:
            raise ProtocolError("CLOSED message requires a subscription id")
        sub_id = _require_str(args[0], "CLOSED subscription id")
        message = args[1] if len(args) > 1 and isinstance(args[1], str) else ""
        return ClosedMessage(subscription_id=sub_id, message=message)

    return None

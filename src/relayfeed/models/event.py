"""
Immutable, shape-validated Nostr event.

Relay JSON is deserialized into [ProtocolEvent][relayfeed.models.event.ProtocolEvent]
at the boundary, so malformed events are rejected once, with a clear error,
instead of leaking missing fields into the buffer and the sink.

See Also:
    [relayfeed.nips.messages][]: Wire codec that builds events from inbound
        ``["EVENT", sub_id, event]`` messages.
    [relayfeed.client.publisher][]: Validates signer output into this model.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ._validation import (
    freeze_tags,
    validate_int,
    validate_str_no_null,
    validate_str_not_empty,
)
from .constants import EVENT_KIND_MAX


_REQUIRED_KEYS = ("id", "pubkey", "kind", "content", "created_at", "tags")


@dataclass(frozen=True, slots=True)
class ProtocolEvent:
    """Immutable Nostr event as received from, or published to, a relay.

    Validation is performed eagerly in ``__post_init__``:

    * ``id`` and ``pubkey`` are non-empty strings.
    * ``kind`` is an int in ``[0, 65535]`` (``bool`` is rejected).
    * ``created_at`` is a non-negative int.
    * ``content`` is a string and ``tags`` a list of string lists; neither
      may contain null bytes.
    * ``sig`` is ``None`` or a non-empty string.

    Tags are stored as nested tuples so the instance is deeply immutable;
    [to_dict()][relayfeed.models.event.ProtocolEvent.to_dict] turns them back
    into lists for the wire.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If a field has the right type but an invalid value.

    Examples:
        ```python
        event = ProtocolEvent.from_dict({
            "id": "ab12...", "pubkey": "cd34...", "kind": 1,
            "content": "hello", "created_at": 1700000000, "tags": [],
            "sig": "ef56...",
        })
        event.to_dict()["tags"]   # []
        ```
    """

    id: str
    pubkey: str
    kind: int
    content: str
    created_at: int
    tags: tuple[tuple[str, ...], ...] = field(default=())
    sig: str | None = None

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        validate_str_not_empty(self.pubkey, "pubkey")
        validate_int(self.kind, "kind", maximum=EVENT_KIND_MAX)
        validate_int(self.created_at, "created_at")
        validate_str_no_null(self.content, "content")
        object.__setattr__(self, "tags", freeze_tags(self.tags))
        if self.sig is not None:
            validate_str_not_empty(self.sig, "sig")

    @classmethod
    def from_dict(cls, data: Any) -> ProtocolEvent:
        """Build an event from a decoded JSON object.

        Unknown keys are ignored. ``sig`` is optional.

        Raises:
            TypeError: If *data* is not a mapping or a field has the wrong type.
            ValueError: If a required key is missing or a value is invalid.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"event must be a JSON object, got {type(data).__name__}")
        missing = [key for key in _REQUIRED_KEYS if key not in data]
        if missing:
            raise ValueError(f"event is missing required fields: {', '.join(missing)}")
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            kind=data["kind"],
            content=data["content"],
            created_at=data["created_at"],
            tags=data["tags"],
            sig=data.get("sig"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation used on the wire."""
        data: dict[str, Any] = {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
        }
        if self.sig is not None:
            data["sig"] = self.sig
        return data

    def tag_values(self, name: str) -> list[str]:
        """Return the first value of every tag called *name*."""
        return [tag[1] for tag in self.tags if len(tag) > 1 and tag[0] == name]

"""
Subscription filter and subscription identity.

A [Subscription][relayfeed.models.filter.Subscription] pairs a client-chosen
id with the [SubscriptionFilter][relayfeed.models.filter.SubscriptionFilter]
sent in its ``REQ``. Both are frozen: starting a new feed always produces a
new subscription rather than mutating the old one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from time import time
from typing import Any

from ._validation import validate_int, validate_str_not_empty
from .constants import SUPPORTED_KINDS


@dataclass(frozen=True, slots=True)
class SubscriptionFilter:
    """Query sent with a ``REQ``: which kinds, how many, and since when.

    Attributes:
        kinds: Event kinds to request; each must be a supported
            [EventKind][relayfeed.models.constants.EventKind].
        limit: Maximum number of stored events each relay should replay.
        since: Unix timestamp; only events created at or after it are requested.

    Raises:
        ValueError: If ``kinds`` is empty or contains an unsupported kind,
            or ``limit``/``since`` are negative.
    """

    kinds: tuple[int, ...]
    limit: int
    since: int

    def __post_init__(self) -> None:
        kinds = tuple(self.kinds)
        if not kinds:
            raise ValueError("kinds must not be empty")
        for kind in kinds:
            validate_int(kind, "kinds")
            if kind not in SUPPORTED_KINDS:
                raise ValueError(f"unsupported event kind: {kind}")
        validate_int(self.limit, "limit")
        validate_int(self.since, "since")
        object.__setattr__(self, "kinds", kinds)

    @classmethod
    def recent(
        cls,
        kinds: list[int] | tuple[int, ...],
        limit: int,
        since_seconds_ago: int,
        now: int | None = None,
    ) -> SubscriptionFilter:
        """Build a filter covering the last ``since_seconds_ago`` seconds."""
        current = int(time()) if now is None else now
        return cls(kinds=tuple(kinds), limit=limit, since=max(0, current - since_seconds_ago))

    def to_dict(self) -> dict[str, Any]:
        """Return the filter object placed in the ``REQ`` message."""
        return {"kinds": list(self.kinds), "limit": self.limit, "since": self.since}


@dataclass(frozen=True, slots=True)
class Subscription:
    """An active subscription: its id and the filter it was opened with."""

    id: str
    filter: SubscriptionFilter
    started_at: int = field(default_factory=lambda: int(time()), compare=False)

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")

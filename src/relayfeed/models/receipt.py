"""
Delivery accounting for a published event.

A [PublishReceipt][relayfeed.models.receipt.PublishReceipt] starts with the
number of relays the ``EVENT`` was written to and accumulates the relays'
``["OK", event_id, accepted, message]`` answers as they arrive.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class PublishReceipt:
    """Immutable snapshot of one event's publish outcome.

    Attributes:
        event_id: Id of the published event.
        sent: Number of relays the ``EVENT`` message was written to.
        accepted: Relay URLs that answered ``OK true``.
        rejected: Relay URL to rejection message for ``OK false`` answers.
    """

    event_id: str
    sent: int
    accepted: frozenset[str] = field(default_factory=frozenset)
    rejected: MappingProxyType[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def with_ack(self, url: str, accepted: bool, message: str = "") -> PublishReceipt:
        """Return a new receipt with one relay's answer recorded.

        A later answer from the same relay replaces the earlier one.
        """
        accepted_urls = set(self.accepted)
        rejected: dict[str, Any] = dict(self.rejected)
        accepted_urls.discard(url)
        rejected.pop(url, None)
        if accepted:
            accepted_urls.add(url)
        else:
            rejected[url] = message
        return replace(
            self,
            accepted=frozenset(accepted_urls),
            rejected=MappingProxyType(rejected),
        )

    @property
    def answered(self) -> int:
        return len(self.accepted) + len(self.rejected)

    @property
    def pending(self) -> int:
        return max(0, self.sent - self.answered)

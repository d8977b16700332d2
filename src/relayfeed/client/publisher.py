"""Signing and broadcasting of locally authored events.

[Publisher.publish][relayfeed.client.publisher.Publisher.publish] checks,
in order: a signer is available, a text note passes content validation,
the signer returns a well-formed event, and at least one relay is open. Each
failure raises a distinct
[PublishingError][relayfeed.core.exceptions.PublishingError] subclass before
anything further happens; in particular nothing is sent when no relay is open.

A successful publish marks the event as seen (so relay echoes are dropped),
opens a [PublishReceipt][relayfeed.models.receipt.PublishReceipt] that
collects ``OK`` answers, and echoes the event to the local sink. Only the
most recent ``MAX_RECEIPTS`` receipts are kept.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Awaitable  # noqa: TC003
from typing import Any

from relayfeed.core.exceptions import (
    NoOpenRelay,
    PublishingError,
    SignerError,
    SignerUnavailable,
    ValidationRejected,
)
from relayfeed.core.logger import Logger
from relayfeed.core.metrics import MESSAGES_SENT, PUBLISH_RESULTS
from relayfeed.models.constants import EventKind
from relayfeed.models.event import ProtocolEvent
from relayfeed.models.receipt import PublishReceipt
from relayfeed.nips.event_builders import build_unsigned, reaction_tags
from relayfeed.nips.messages import OkMessage, event_message

from .buffer import EventSink  # noqa: TC001
from .pool import RelayPool  # noqa: TC001
from .signer import Signer  # noqa: TC001
from .subscription import SubscriptionManager  # noqa: TC001
from .validator import ContentValidator  # noqa: TC001


MAX_RECEIPTS = 1000  # oldest receipts are dropped beyond this


class Publisher:
    """Publishes events and tracks reactions and delivery receipts.

    Args:
        pool: Relays to broadcast to.
        subscriptions: Receives published ids for echo suppression.
        validator: Applied to text note content before signing.
        sink: Receives each successfully published event (local echo).
        signer: Default signer; ``publish`` may override it per call.
    """

    def __init__(
        self,
        pool: RelayPool,
        subscriptions: SubscriptionManager,
        validator: ContentValidator,
        sink: EventSink | None = None,
        signer: Signer | None = None,
    ) -> None:
        self._pool = pool
        self._subscriptions = subscriptions
        self._validator = validator
        self._sink = sink
        self.signer = signer
        self._reacted: set[str] = set()
        self._reacting: set[str] = set()
        self._receipts: OrderedDict[str, PublishReceipt] = OrderedDict()
        self._logger = Logger("publisher")

    async def publish(
        self,
        kind: int,
        content: str,
        tags: list[list[str]] | None = None,
        signer: Signer | None = None,
    ) -> ProtocolEvent:
        """Sign and broadcast an event.

        Raises:
            SignerUnavailable: No signer was given or configured.
            ValidationRejected: A text note is too long or has a blocked word.
            SignerError: The signer failed or returned a malformed event.
            NoOpenRelay: No relay was open; nothing was sent.
        """
        signer = signer or self.signer
        if signer is None:
            PUBLISH_RESULTS.labels(result="no_signer").inc()
            raise SignerUnavailable("no signer available")

        if kind == EventKind.TEXT_NOTE and self._validator.is_invalid(content):
            PUBLISH_RESULTS.labels(result="rejected").inc()
            raise ValidationRejected(
                f"content exceeds {self._validator.max_length} characters or contains a blocked word"
            )

        event = await self._sign(signer, kind, content, tags)

        sent = self._pool.broadcast(event_message(event))
        if sent == 0:
            PUBLISH_RESULTS.labels(result="no_relay").inc()
            raise NoOpenRelay("no open relay to publish to")

        MESSAGES_SENT.labels(type="EVENT").inc(sent)
        PUBLISH_RESULTS.labels(result="sent").inc()
        self._subscriptions.mark_seen(event.id)
        self._receipts[event.id] = PublishReceipt(event_id=event.id, sent=sent)
        while len(self._receipts) > MAX_RECEIPTS:
            self._receipts.popitem(last=False)
        self._logger.info("event_published", event_id=event.id, kind=event.kind, relays=sent)
        self._echo(event)
        return event

    async def _sign(
        self,
        signer: Signer,
        kind: int,
        content: str,
        tags: list[list[str]] | None,
    ) -> ProtocolEvent:
        pubkey = await self._call_signer(signer.get_public_key())
        unsigned = build_unsigned(kind, content, pubkey, tags)
        signed: Any = await self._call_signer(signer.sign_event(unsigned))
        try:
            event = ProtocolEvent.from_dict(signed)
        except (TypeError, ValueError) as e:
            PUBLISH_RESULTS.labels(result="signer_error").inc()
            raise SignerError(f"signer returned a malformed event: {e}") from e
        if event.kind != unsigned["kind"] or event.content != content:
            PUBLISH_RESULTS.labels(result="signer_error").inc()
            raise SignerError("signed event does not match the requested envelope")
        return event

    @staticmethod
    async def _call_signer(call: Awaitable[Any]) -> Any:
        try:
            return await call
        except PublishingError:
            PUBLISH_RESULTS.labels(result="signer_error").inc()
            raise
        except Exception as e:  # CancelledError passes through
            PUBLISH_RESULTS.labels(result="signer_error").inc()
            raise SignerError(f"signer failed: {e}") from e

    def _echo(self, event: ProtocolEvent) -> None:
        if self._sink is None:
            return
        try:
            self._sink(event)
        except Exception as e:  # sink error boundary
            self._logger.error("sink_failed", event_id=event.id, error=str(e))

    # -------------------------------------------------------------------------
    # Reactions
    # -------------------------------------------------------------------------

    async def react(self, target: ProtocolEvent, content: str = "+") -> ProtocolEvent | None:
        """Publish a NIP-25 reaction to *target*.

        Returns:
            The reaction event, or ``None`` if *target* was already reacted to
            or a reaction to it is in flight.

        Raises:
            PublishingError: As for ``publish``; the target stays un-reacted.
        """
        if target.id in self._reacted or target.id in self._reacting:
            self._logger.debug("reaction_skipped", event_id=target.id)
            return None

        self._reacting.add(target.id)
        try:
            reaction = await self.publish(EventKind.REACTION, content, reaction_tags(target))
        finally:
            self._reacting.discard(target.id)
        self._reacted.add(target.id)
        return reaction

    def has_reacted(self, event_id: str) -> bool:
        return event_id in self._reacted

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def record_ack(self, url: str, ok: OkMessage) -> None:
        """Record a relay's ``OK`` answer; answers for unknown events are ignored."""
        receipt = self._receipts.get(ok.event_id)
        if receipt is None:
            return
        self._receipts[ok.event_id] = receipt.with_ack(url, ok.accepted, ok.message)
        if ok.accepted:
            self._logger.debug("event_accepted", url=url, event_id=ok.event_id)
        else:
            self._logger.warning("event_rejected_by_relay", url=url, event_id=ok.event_id, message=ok.message)

    def receipt(self, event_id: str) -> PublishReceipt | None:
        return self._receipts.get(event_id)

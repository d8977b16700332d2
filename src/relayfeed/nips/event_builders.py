"""Unsigned event envelopes for the kinds the timeline publishes.

Standalone functions returning the unsigned ``{kind, content, created_at,
tags, pubkey}`` dict handed to a
[Signer][relayfeed.client.signer.Signer]. Used by the
[Publisher][relayfeed.client.publisher.Publisher].
"""

from __future__ import annotations

from time import time
from typing import TYPE_CHECKING, Any

from relayfeed.models.constants import EventKind


if TYPE_CHECKING:
    from relayfeed.models.event import ProtocolEvent


# =============================================================================
# Generic (NIP-01)
# =============================================================================


def build_unsigned(
    kind: int,
    content: str,
    pubkey: str,
    tags: list[list[str]] | None = None,
    created_at: int | None = None,
) -> dict[str, Any]:
    """Build an unsigned event envelope stamped with the current time."""
    return {
        "kind": int(kind),
        "content": content,
        "created_at": int(time()) if created_at is None else created_at,
        "tags": [list(tag) for tag in tags or []],
        "pubkey": pubkey,
    }


# =============================================================================
# Kind 1 (NIP-01)
# =============================================================================


def build_text_note(
    content: str,
    pubkey: str,
    tags: list[list[str]] | None = None,
    created_at: int | None = None,
) -> dict[str, Any]:
    """Build a Kind 1 text note envelope."""
    return build_unsigned(EventKind.TEXT_NOTE, content, pubkey, tags, created_at)


# =============================================================================
# Kind 7 (NIP-25)
# =============================================================================


def reaction_tags(target: ProtocolEvent) -> list[list[str]]:
    """Return the ``e``/``p`` tags pointing a reaction at *target*."""
    return [["e", target.id], ["p", target.pubkey]]


def build_reaction(
    target: ProtocolEvent,
    pubkey: str,
    content: str = "+",
    created_at: int | None = None,
) -> dict[str, Any]:
    """Build a Kind 7 reaction envelope; ``"+"`` is a like."""
    return build_unsigned(EventKind.REACTION, content, pubkey, reaction_tags(target), created_at)

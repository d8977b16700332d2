"""Signing capability injected into the publisher.

The client never holds or derives private keys itself. Anything with these
two coroutines can sign: a local key
([KeysSigner][relayfeed.utils.keys.KeysSigner]), a remote signer, or a test
double.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Signer(Protocol):
    async def get_public_key(self) -> str:
        """Return the signing identity as 64-char lowercase hex."""
        ...

    async def sign_event(self, unsigned: dict[str, Any]) -> dict[str, Any]:
        """Return *unsigned* completed with ``id``, ``pubkey`` and ``sig``."""
        ...

"""
Validated relay endpoint with a normalized identity.

Parses and normalizes WebSocket relay URLs (``ws://`` or ``wss://``) so that
``wss://Yabu.me/`` and ``wss://yabu.me`` name the same endpoint inside a
[RelayPool][relayfeed.client.pool.RelayPool].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator


@dataclass(frozen=True, slots=True)
class RelayEndpoint:
    """Immutable, normalized relay WebSocket endpoint.

    Normalization lower-cases the scheme and host, drops the default port for
    the scheme, collapses duplicate slashes in the path and strips trailing
    slashes. Two endpoints are equal exactly when their normalized ``url``
    values are equal.

    Attributes:
        url: Normalized URL including scheme. This is the endpoint identity.
        scheme: ``ws`` or ``wss``.
        host: Hostname or IP address (brackets stripped for IPv6).
        port: Explicit non-default port, or ``None``.
        path: Path component without trailing slash, or ``None``.

    Raises:
        ValueError: If the URL is malformed, uses a scheme other than
            ``ws``/``wss``, carries a query string or fragment, or contains
            null bytes.

    Examples:
        ```python
        endpoint = RelayEndpoint("wss://Relay-JP.nostr.wirednet.jp/")
        endpoint.url    # 'wss://relay-jp.nostr.wirednet.jp'
        endpoint.host   # 'relay-jp.nostr.wirednet.jp'
        ```
    """

    raw_url: str = field(repr=False, compare=False, hash=False)

    url: str = field(init=False)
    scheme: str = field(init=False, compare=False, hash=False)
    host: str = field(init=False, compare=False, hash=False)
    port: int | None = field(init=False, compare=False, hash=False)
    path: str | None = field(init=False, compare=False, hash=False)

    _DEFAULT_PORTS: ClassVar[dict[str, int]] = {"ws": 80, "wss": 443}

    def __post_init__(self) -> None:
        if not isinstance(self.raw_url, str):
            raise ValueError(f"Relay URL must be a str, got {type(self.raw_url).__name__}")
        if "\x00" in self.raw_url:
            raise ValueError("Relay URL contains null bytes")

        parsed = self._parse(self.raw_url)

        # Bypass frozen restriction to set computed fields
        object.__setattr__(self, "url", parsed["url"])
        object.__setattr__(self, "scheme", parsed["scheme"])
        object.__setattr__(self, "host", parsed["host"])
        object.__setattr__(self, "port", parsed["port"])
        object.__setattr__(self, "path", parsed["path"])

    @classmethod
    def _parse(cls, raw: str) -> dict[str, Any]:
        """Validate a raw relay URL with RFC 3986 rules and normalize it."""
        uri = uri_reference(raw.strip()).normalize()

        validator = (
            Validator()
            .require_presence_of("scheme", "host")
            .allow_schemes("ws", "wss")
            .check_validity_of("scheme", "host", "port", "path")
        )

        try:
            validator.validate(uri)
        except UnpermittedComponentError:
            raise ValueError(f"Invalid scheme: must be ws or wss: {raw!r}") from None
        except ValidationError as e:
            raise ValueError(f"Invalid relay URL {raw!r}: {e}") from None

        if uri.query:
            raise ValueError(f"Relay URL must not contain a query string: ?{uri.query}")
        if uri.fragment:
            raise ValueError(f"Relay URL must not contain a fragment: #{uri.fragment}")

        scheme = uri.scheme
        host = uri.host.strip("[]")
        if not host:
            raise ValueError(f"Relay URL has an empty host: {raw!r}")
        port = int(uri.port) if uri.port else None
        if port == cls._DEFAULT_PORTS[scheme]:
            port = None

        path = uri.path or ""
        while "//" in path:
            path = path.replace("//", "/")
        path = path.rstrip("/") or None

        formatted_host = f"[{host}]" if ":" in host else host
        authority = f"{formatted_host}:{port}" if port else formatted_host

        return {
            "url": f"{scheme}://{authority}{path or ''}",
            "scheme": scheme,
            "host": host,
            "port": port,
            "path": path,
        }

    def __str__(self) -> str:
        return self.url


def normalize_url(raw: str) -> str:
    """Return the normalized identity of a relay URL.

    Raises:
        ValueError: If the URL is not a valid relay endpoint.
    """
    return RelayEndpoint(raw).url

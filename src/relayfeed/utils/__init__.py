"""Utility layer: WebSocket transport, HTTP/JSON loading, and key handling.

Attributes:
    open_channel: Default aiohttp WebSocket connector for relay connections.
    WebSocketChannel: Protocol every connector's channel implements.
    load_json_source: JSON from an ``http(s)`` URL or a local path, size-bounded.
    KeysSigner: ``nostr_sdk``-backed signer.
    KeysConfig: Pydantic model loading keys from an environment variable.
"""

from .http import fetch_json, load_json_source, read_bounded_json
from .keys import ENV_PRIVATE_KEY, KeysConfig, KeysSigner, load_keys_from_env
from .transport import (
    DEFAULT_TIMEOUT,
    AiohttpChannel,
    Connector,
    WebSocketChannel,
    open_channel,
)


__all__ = [
    "DEFAULT_TIMEOUT",
    "ENV_PRIVATE_KEY",
    "AiohttpChannel",
    "Connector",
    "KeysConfig",
    "KeysSigner",
    "WebSocketChannel",
    "fetch_json",
    "load_json_source",
    "load_keys_from_env",
    "open_channel",
    "read_bounded_json",
]

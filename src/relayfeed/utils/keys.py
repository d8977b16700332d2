"""Nostr key loading and a key-backed event signer.

Provides functions and Pydantic models for loading a Nostr private key from an
environment variable (nsec1 bech32 or hex), and
[KeysSigner][relayfeed.utils.keys.KeysSigner], an implementation of the
[Signer][relayfeed.client.signer.Signer] protocol that signs locally with
``nostr_sdk``.

Warning:
    Private keys must **never** be stored in configuration files, source code,
    or logged to any output. Always use environment variables or a secret
    manager.

Examples:
    ```python
    import os

    os.environ["NOSTR_PRIVATE_KEY"] = "nsec1..."  # pragma: allowlist secret
    signer = KeysSigner(load_keys_from_env("NOSTR_PRIVATE_KEY"))
    pubkey = await signer.get_public_key()
    ```
"""

from __future__ import annotations

import json
import os
from typing import Any

from nostr_sdk import EventBuilder, Keys, Kind, Tag, Timestamp
from pydantic import BaseModel, Field, model_validator

from relayfeed.core.exceptions import ConfigurationError, SignerError


ENV_PRIVATE_KEY = "NOSTR_PRIVATE_KEY"  # pragma: allowlist secret  # Default env var name


def load_keys_from_env(env_var: str) -> Keys:
    """Load Nostr keys from an environment variable.

    Args:
        env_var: Name of the environment variable containing the private key.

    Returns:
        A ``nostr_sdk.Keys`` instance ready for signing.

    Raises:
        ValueError: If the environment variable is not set or is empty.
        ConfigurationError: If the key value is not a valid nsec or hex key.
    """
    value = os.getenv(env_var)

    if not value:
        raise ValueError(
            f"{env_var} environment variable is required. Generate one with: openssl rand -hex 32"
        )

    try:
        return Keys.parse(value)
    except Exception as e:  # nostr-sdk Rust FFI can raise arbitrary exception types
        raise ConfigurationError(f"{env_var} does not hold a valid private key") from e


class KeysConfig(BaseModel):
    """Pydantic model that auto-loads Nostr keys from an environment variable.

    Attributes:
        keys_env: Environment variable name for the private key.
        keys: Loaded ``nostr_sdk.Keys`` instance (private + derived public key).

    Warning:
        The ``keys`` field contains a live private key. Do not serialize this
        model to logs or persistent storage. ``arbitrary_types_allowed`` is
        required because ``nostr_sdk.Keys`` is a Rust-backed FFI type.
    """

    model_config = {"arbitrary_types_allowed": True}

    keys_env: str = Field(
        default=ENV_PRIVATE_KEY,
        min_length=1,
        description="Environment variable name for private key",
    )
    keys: Keys = Field(description="Keys loaded from keys_env (required)")

    @model_validator(mode="before")
    @classmethod
    def _load_keys_from_env(cls, data: Any) -> Any:
        """Auto-populate the ``keys`` field from the environment variable."""
        if isinstance(data, dict) and "keys" not in data:
            env_var = data.get("keys_env", ENV_PRIVATE_KEY)
            data["keys"] = load_keys_from_env(env_var)
        return data


class KeysSigner:
    """[Signer][relayfeed.client.signer.Signer] backed by a local ``nostr_sdk.Keys``.

    The unsigned envelope's ``kind``, ``content``, ``tags`` and
    ``created_at`` are reproduced exactly; ``id`` and ``sig`` are computed
    by nostr-sdk.
    """

    def __init__(self, keys: Keys) -> None:
        self._keys = keys

    async def get_public_key(self) -> str:
        return self._keys.public_key().to_hex()

    async def sign_event(self, unsigned: dict[str, Any]) -> dict[str, Any]:
        """Sign an unsigned envelope and return the signed event as a dict.

        Raises:
            SignerError: If the envelope names a different pubkey or
                nostr-sdk rejects it.
        """
        own_pubkey = self._keys.public_key().to_hex()
        if unsigned.get("pubkey", own_pubkey) != own_pubkey:
            raise SignerError("envelope pubkey does not match the signing key")

        try:
            tags = [Tag.parse(list(tag)) for tag in unsigned.get("tags", [])]
            builder = (
                EventBuilder(Kind(int(unsigned["kind"])), unsigned["content"])
                .tags(tags)
                .custom_created_at(Timestamp.from_secs(int(unsigned["created_at"])))
            )
            event = builder.finalize(self._keys)
        except Exception as e:  # nostr-sdk Rust FFI can raise arbitrary exception types
            raise SignerError(f"signing failed: {e}") from e

        signed: dict[str, Any] = json.loads(event.as_json())
        return signed

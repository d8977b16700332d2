"""
Unit tests for utils.keys module.

Tests:
- load_keys_from_env() with missing, empty, hex and nsec values
- KeysConfig auto-loading from the environment
- KeysSigner public key and event signing via nostr-sdk
"""

import os
from unittest.mock import patch

import pytest
from nostr_sdk import Keys

from relayfeed.core.exceptions import ConfigurationError, SignerError
from relayfeed.models import ProtocolEvent
from relayfeed.nips import build_text_note
from relayfeed.utils.keys import ENV_PRIVATE_KEY, KeysConfig, KeysSigner, load_keys_from_env


# Valid secp256k1 test keys (DO NOT USE IN PRODUCTION)
VALID_HEX_KEY = (
    "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"  # pragma: allowlist secret
)
VALID_NSEC_KEY = (
    "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"  # pragma: allowlist secret
)


# =============================================================================
# load_keys_from_env()
# =============================================================================


class TestLoadKeysFromEnv:
    """Environment variable loading."""

    def test_default_env_var_name(self) -> None:
        assert ENV_PRIVATE_KEY == "NOSTR_PRIVATE_KEY"  # pragma: allowlist secret

    def test_missing(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="NOSTR_PRIVATE_KEY environment variable is required"):
                load_keys_from_env(ENV_PRIVATE_KEY)

    def test_empty(self) -> None:
        with patch.dict(os.environ, {ENV_PRIVATE_KEY: ""}):
            with pytest.raises(ValueError):
                load_keys_from_env(ENV_PRIVATE_KEY)

    def test_hex_and_nsec_give_same_keys(self) -> None:
        with patch.dict(os.environ, {"HEX_KEY": VALID_HEX_KEY, "NSEC_KEY": VALID_NSEC_KEY}):
            hex_keys = load_keys_from_env("HEX_KEY")
            nsec_keys = load_keys_from_env("NSEC_KEY")
        assert hex_keys.public_key().to_hex() == nsec_keys.public_key().to_hex()

    @pytest.mark.parametrize("value", ["not-a-key", "nsec1invalid", "zz" * 32])
    def test_malformed_value(self, value: str) -> None:
        with patch.dict(os.environ, {ENV_PRIVATE_KEY: value}):
            with pytest.raises(ConfigurationError, match="does not hold a valid private key"):
                load_keys_from_env(ENV_PRIVATE_KEY)


class TestKeysConfig:
    """Pydantic model auto-loading keys."""

    def test_loads_from_default_env(self) -> None:
        with patch.dict(os.environ, {ENV_PRIVATE_KEY: VALID_HEX_KEY}):
            config = KeysConfig()
        assert isinstance(config.keys, Keys)

    def test_custom_env_var(self) -> None:
        with patch.dict(os.environ, {"RELAYFEED_KEY": VALID_NSEC_KEY}):
            config = KeysConfig(keys_env="RELAYFEED_KEY")
        assert config.keys_env == "RELAYFEED_KEY"

    def test_missing_env_raises(self) -> None:
        with patch.dict(os.environ, {}, clear=True), pytest.raises(ValueError):
            KeysConfig()

    def test_malformed_env_raises_configuration_error(self) -> None:
        with (
            patch.dict(os.environ, {ENV_PRIVATE_KEY: "not-a-key"}),
            pytest.raises(ConfigurationError),
        ):
            KeysConfig()


# =============================================================================
# KeysSigner
# =============================================================================


class TestKeysSigner:
    """Signing with nostr-sdk keys."""

    @pytest.fixture
    def keys(self) -> Keys:
        return Keys.parse(VALID_HEX_KEY)

    async def test_public_key(self, keys: Keys) -> None:
        pubkey = await KeysSigner(keys).get_public_key()
        assert pubkey == keys.public_key().to_hex()
        assert len(pubkey) == 64

    async def test_sign_preserves_envelope(self, keys: Keys) -> None:
        signer = KeysSigner(keys)
        pubkey = await signer.get_public_key()
        unsigned = build_text_note("hello nostr", pubkey, [["t", "nostr"]], created_at=1_700_000_000)

        signed = await signer.sign_event(unsigned)
        event = ProtocolEvent.from_dict(signed)

        assert event.kind == 1
        assert event.content == "hello nostr"
        assert event.created_at == 1_700_000_000
        assert event.tags == (("t", "nostr"),)
        assert event.pubkey == pubkey
        assert len(event.id) == 64
        assert event.sig is not None
        assert len(event.sig) == 128

    async def test_foreign_pubkey_rejected(self, keys: Keys) -> None:
        unsigned = build_text_note("hello", "0" * 64, created_at=1_700_000_000)
        with pytest.raises(SignerError, match="does not match"):
            await KeysSigner(keys).sign_event(unsigned)

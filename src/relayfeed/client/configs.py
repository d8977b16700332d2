"""Configuration models for the timeline client.

Every section has defaults, so an empty YAML document produces a working
client pointed at the default relay set. Partial overrides inherit the rest
(for example setting only ``content.max_length`` keeps the default wordlist
source).

Examples:
    ```yaml
    relays:
      urls:
        - wss://yabu.me
        - wss://r.kojira.io
    subscription:
      kinds: [1]
      limit: 30
      since_seconds_ago: 3600
    buffer:
      flush_window: 0.2
    connection:
      reconnect_delay: 5.0
    content:
      max_length: 108
      wordlist_source: ./ngwords.json
      user_words: [spam]
    metrics:
      enabled: false
    ```

See Also:
    [Timeline][relayfeed.client.timeline.Timeline]: Composition root that
        consumes [TimelineConfig][relayfeed.client.configs.TimelineConfig].
    [load_yaml][relayfeed.core.yaml.load_yaml]: YAML loader used by
        ``Timeline.from_yaml``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from relayfeed.core.metrics import MetricsConfig
from relayfeed.models.constants import SUPPORTED_KINDS, EventKind


DEFAULT_RELAYS: tuple[str, ...] = (
    "wss://relay-jp.nostr.wirednet.jp",
    "wss://yabu.me",
    "wss://r.kojira.io",
    "wss://relay.barine.co",
)


# =============================================================================
# Sections
# =============================================================================


class RelaysConfig(BaseModel):
    """Relay endpoints the pool connects to at startup.

    Invalid URLs are not rejected here; the pool logs and skips them, so one
    typo does not prevent the client from starting.
    """

    urls: list[str] = Field(default_factory=lambda: list(DEFAULT_RELAYS))


class SubscriptionConfig(BaseModel):
    """Default filter used when a subscription starts without an explicit one."""

    kinds: list[int] = Field(default_factory=lambda: [int(EventKind.TEXT_NOTE)], min_length=1)
    limit: int = Field(default=30, ge=1, le=5000, description="Stored events per relay")
    since_seconds_ago: int = Field(
        default=3600, ge=0, description="Look-back window for the since timestamp"
    )

    @field_validator("kinds", mode="after")
    @classmethod
    def validate_kinds(cls, v: list[int]) -> list[int]:
        """Restrict subscriptions to the kinds the timeline understands."""
        for kind in v:
            if kind not in SUPPORTED_KINDS:
                raise ValueError(
                    f"Unsupported event kind {kind} (supported: {sorted(SUPPORTED_KINDS)})"
                )
        return v


class BufferConfig(BaseModel):
    flush_window: float = Field(
        default=0.2, gt=0.0, le=60.0, description="Debounce window in seconds"
    )


class ConnectionConfig(BaseModel):
    """Per-relay connection behavior."""

    reconnect_delay: float = Field(
        default=5.0, ge=0.0, le=3600.0, description="Delay before reconnecting after a drop"
    )
    timeout: float = Field(default=10.0, ge=1.0, le=120.0, description="WebSocket open timeout")


class ContentConfig(BaseModel):
    """Moderation: maximum note length and the blocked-word lists.

    ``wordlist_source`` is an ``http(s)`` URL or a local path to a JSON array
    of strings; ``None`` disables the default list.
    """

    max_length: int = Field(default=108, ge=1, description="Maximum length in code points")
    wordlist_source: str | None = Field(default="./ngwords.json")
    wordlist_timeout: float = Field(default=10.0, ge=1.0, le=120.0)
    user_words: list[str] = Field(default_factory=list)


# =============================================================================
# Root
# =============================================================================


class TimelineConfig(BaseModel):
    """Complete timeline client configuration."""

    relays: RelaysConfig = Field(default_factory=RelaysConfig)
    subscription: SubscriptionConfig = Field(default_factory=SubscriptionConfig)
    buffer: BufferConfig = Field(default_factory=BufferConfig)
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

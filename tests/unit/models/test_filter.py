"""
Unit tests for models.filter, models.receipt and models.constants.

Tests:
- SubscriptionFilter validation, recent() and to_dict()
- Subscription identity
- PublishReceipt ack accounting
- EventKind and ConnectionState transition table
"""

import pytest

from relayfeed.models import (
    ALLOWED_TRANSITIONS,
    SUPPORTED_KINDS,
    ConnectionState,
    EventKind,
    PublishReceipt,
    Subscription,
    SubscriptionFilter,
)


# =============================================================================
# SubscriptionFilter
# =============================================================================


class TestSubscriptionFilter:
    """Filter construction and wire form."""

    def test_to_dict(self) -> None:
        f = SubscriptionFilter(kinds=(1,), limit=30, since=1_700_000_000)
        assert f.to_dict() == {"kinds": [1], "limit": 30, "since": 1_700_000_000}

    def test_kinds_list_coerced_to_tuple(self) -> None:
        f = SubscriptionFilter(kinds=[1, 7], limit=10, since=0)  # type: ignore[arg-type]
        assert f.kinds == (1, 7)

    def test_recent(self) -> None:
        f = SubscriptionFilter.recent([1], limit=30, since_seconds_ago=3600, now=1_700_003_600)
        assert f.since == 1_700_000_000
        assert f.limit == 30

    def test_recent_clamps_at_zero(self) -> None:
        assert SubscriptionFilter.recent([1], limit=1, since_seconds_ago=100, now=50).since == 0

    def test_empty_kinds_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            SubscriptionFilter(kinds=(), limit=30, since=0)

    def test_unsupported_kind_rejected(self) -> None:
        with pytest.raises(ValueError, match="unsupported event kind: 3"):
            SubscriptionFilter(kinds=(3,), limit=30, since=0)

    def test_negative_limit_rejected(self) -> None:
        with pytest.raises(ValueError):
            SubscriptionFilter(kinds=(1,), limit=-1, since=0)


class TestSubscription:
    """Subscription identity."""

    def test_started_at_not_compared(self) -> None:
        f = SubscriptionFilter(kinds=(1,), limit=30, since=0)
        assert Subscription("sub-1", f, started_at=1) == Subscription("sub-1", f, started_at=2)

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            Subscription("", SubscriptionFilter(kinds=(1,), limit=30, since=0))


# =============================================================================
# PublishReceipt
# =============================================================================


class TestPublishReceipt:
    """OK accounting."""

    def test_initial(self) -> None:
        receipt = PublishReceipt(event_id="a" * 64, sent=3)
        assert receipt.answered == 0
        assert receipt.pending == 3

    def test_with_ack_returns_new_instance(self) -> None:
        receipt = PublishReceipt(event_id="a" * 64, sent=2)
        updated = receipt.with_ack("wss://yabu.me", accepted=True)
        assert receipt.answered == 0
        assert updated.accepted == frozenset({"wss://yabu.me"})
        assert updated.pending == 1

    def test_rejection_keeps_message(self) -> None:
        receipt = PublishReceipt(event_id="a" * 64, sent=1).with_ack(
            "wss://yabu.me", accepted=False, message="blocked: spam"
        )
        assert receipt.rejected["wss://yabu.me"] == "blocked: spam"
        assert receipt.pending == 0

    def test_later_answer_replaces_earlier(self) -> None:
        receipt = (
            PublishReceipt(event_id="a" * 64, sent=1)
            .with_ack("wss://yabu.me", accepted=False, message="rate-limited")
            .with_ack("wss://yabu.me", accepted=True)
        )
        assert receipt.accepted == frozenset({"wss://yabu.me"})
        assert dict(receipt.rejected) == {}
        assert receipt.answered == 1

    def test_pending_never_negative(self) -> None:
        receipt = (
            PublishReceipt(event_id="a" * 64, sent=1)
            .with_ack("wss://a", accepted=True)
            .with_ack("wss://b", accepted=True)
        )
        assert receipt.pending == 0


# =============================================================================
# Constants
# =============================================================================


class TestConstants:
    """Enumerations and the transition table."""

    def test_event_kinds(self) -> None:
        assert EventKind.SET_METADATA == 0
        assert EventKind.TEXT_NOTE == 1
        assert EventKind.REACTION == 7
        assert SUPPORTED_KINDS == frozenset({0, 1, 7})

    @pytest.mark.parametrize(
        ("old", "new"),
        [
            (ConnectionState.CONNECTING, ConnectionState.OPEN),
            (ConnectionState.OPEN, ConnectionState.CLOSED),
            (ConnectionState.CONNECTING, ConnectionState.CLOSED),
            (ConnectionState.CLOSED, ConnectionState.CONNECTING),
        ],
    )
    def test_allowed(self, old: ConnectionState, new: ConnectionState) -> None:
        assert (old, new) in ALLOWED_TRANSITIONS

    @pytest.mark.parametrize(
        ("old", "new"),
        [
            (ConnectionState.OPEN, ConnectionState.CONNECTING),
            (ConnectionState.CLOSED, ConnectionState.OPEN),
            (ConnectionState.OPEN, ConnectionState.OPEN),
        ],
    )
    def test_refused(self, old: ConnectionState, new: ConnectionState) -> None:
        assert (old, new) not in ALLOWED_TRANSITIONS

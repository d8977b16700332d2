"""
Pytest configuration and shared fixtures for relayfeed tests.

Provides:
- An in-memory WebSocket channel and connector standing in for aiohttp
- A deterministic signer standing in for nostr-sdk keys
- Sample event factories
"""

import asyncio
import itertools
import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import pytest

from relayfeed.core.exceptions import ConnectivityError
from relayfeed.models.event import ProtocolEvent


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Fake Transport
# ============================================================================


class FakeChannel:
    """In-memory text WebSocket.

    ``feed()`` queues an inbound frame, ``drop()`` simulates the relay
    closing the socket. Outbound frames are collected in ``sent``.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.sent: list[str] = []
        self.closed = False
        self.fail_send = False
        self._incoming: asyncio.Queue[str | None] = asyncio.Queue()

    async def send(self, text: str) -> None:
        if self.closed or self.fail_send:
            raise ConnectionResetError("socket closed")
        self.sent.append(text)

    async def recv(self) -> str | None:
        if self.closed:
            return None
        return await self._incoming.get()

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(None)

    def feed(self, message: Any) -> None:
        self._incoming.put_nowait(message if isinstance(message, str) else json.dumps(message))

    def drop(self) -> None:
        self._incoming.put_nowait(None)

    def sent_messages(self) -> list[Any]:
        return [json.loads(text) for text in self.sent]


class FakeConnector:
    """Async connector returning a new FakeChannel per call.

    URLs in ``failing`` raise ``ConnectivityError`` instead.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.channels: dict[str, list[FakeChannel]] = {}
        self.failing: set[str] = set()

    async def __call__(self, url: str) -> FakeChannel:
        self.calls.append(url)
        if url in self.failing:
            raise ConnectivityError(f"Connection failed: {url}")
        channel = FakeChannel(url)
        self.channels.setdefault(url, []).append(channel)
        return channel

    def latest(self, url: str) -> FakeChannel:
        return self.channels[url][-1]

    def call_count(self, url: str) -> int:
        return self.calls.count(url)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def settle() -> Callable[..., Coroutine[Any, Any, None]]:
    """Return a coroutine that lets pending tasks run for a few loop iterations."""

    async def _settle(rounds: int = 10) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


# ============================================================================
# Fake Signer
# ============================================================================


class FakeSigner:
    """Signer that fills in a sequential id and a fixed signature."""

    def __init__(self, pubkey: str = "b" * 64) -> None:
        self.pubkey = pubkey
        self.signed: list[dict[str, Any]] = []
        self._counter = itertools.count(1)

    async def get_public_key(self) -> str:
        return self.pubkey

    async def sign_event(self, unsigned: dict[str, Any]) -> dict[str, Any]:
        event = dict(unsigned)
        event["id"] = f"{next(self._counter):064x}"
        event["sig"] = "e" * 128
        self.signed.append(event)
        return event


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def make_event_dict() -> Callable[..., dict[str, Any]]:
    """Factory for relay-shaped event objects with unique ids."""
    counter = itertools.count(1)

    def _make(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": f"{next(counter):064x}",
            "pubkey": "a" * 64,
            "created_at": 1_700_000_000,
            "kind": 1,
            "tags": [],
            "content": "hello nostr",
            "sig": "f" * 128,
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_event(make_event_dict: Callable[..., dict[str, Any]]) -> Callable[..., ProtocolEvent]:
    def _make(**overrides: Any) -> ProtocolEvent:
        return ProtocolEvent.from_dict(make_event_dict(**overrides))

    return _make


@pytest.fixture
def sample_event(make_event: Callable[..., ProtocolEvent]) -> ProtocolEvent:
    return make_event(id="c" * 64, pubkey="d" * 64, content="sample")

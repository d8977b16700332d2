"""
Unit tests for client.connection module.

Tests:
- connect() / send() / close() lifecycle over an in-memory channel
- Ordered writes through the per-connection outbox
- Inbound frames emitted as MessageReceived
- Auto-reconnect after remote close, open failure and write failure
- Reconnect fires after the delay and not before
- close() suppresses reconnection, including a pending one
- Refused state transitions
"""

import asyncio
import json
import logging

import pytest

from relayfeed.client.connection import (
    ConnectionClosed,
    ConnectionOpened,
    MessageReceived,
    RelayConnection,
)
from relayfeed.models import ConnectionState, RelayEndpoint


URL = "wss://yabu.me"
DELAY = 0.2


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def conn(connector, events):
    return RelayConnection(
        RelayEndpoint(URL + "/"), events.append, connector=connector, reconnect_delay=DELAY
    )


# =============================================================================
# Lifecycle
# =============================================================================


class TestConnect:
    """Opening a connection."""

    async def test_initial_state_closed(self, conn) -> None:
        assert conn.state is ConnectionState.CLOSED
        assert conn.is_open() is False
        assert conn.url == URL

    async def test_connect_opens(self, conn, connector, events, settle) -> None:
        conn.connect()
        assert conn.state is ConnectionState.CONNECTING

        await settle()

        assert conn.is_open()
        assert connector.calls == [URL]
        assert events == [ConnectionOpened(URL)]
        conn.close()

    async def test_connect_replaces_live_channel(self, conn, connector, events, settle) -> None:
        conn.connect()
        await settle()
        first = connector.latest(URL)

        conn.connect()
        await settle()

        assert first.closed
        assert connector.latest(URL) is not first
        assert conn.is_open()
        assert events == [
            ConnectionOpened(URL),
            ConnectionClosed(URL, requested=True),
            ConnectionOpened(URL),
        ]
        conn.close()

    async def test_wait_closed_without_connect(self, conn) -> None:
        await conn.wait_closed()


class TestSend:
    """Outbound messages."""

    async def test_send_when_open(self, conn, connector, settle) -> None:
        conn.connect()
        await settle()

        assert conn.send(["CLOSE", "sub-1"]) is True
        await settle()

        assert connector.latest(URL).sent == ['["CLOSE","sub-1"]']
        conn.close()

    async def test_send_when_not_open(self, conn, connector) -> None:
        assert conn.send(["CLOSE", "sub-1"]) is False
        conn.connect()
        assert conn.send(["CLOSE", "sub-1"]) is False
        conn.close()

    async def test_writes_are_ordered(self, conn, connector, settle) -> None:
        conn.connect()
        await settle()

        for i in range(5):
            conn.send(["CLOSE", f"sub-{i}"])
        await settle(20)

        assert [m[1] for m in connector.latest(URL).sent_messages()] == [
            f"sub-{i}" for i in range(5)
        ]
        conn.close()

    async def test_unencodable_message_raises(self, conn, settle) -> None:
        conn.connect()
        await settle()
        with pytest.raises(TypeError):
            conn.send(["EVENT", object()])
        conn.close()


class TestReceive:
    """Inbound frames."""

    async def test_frames_emitted_in_order(self, conn, connector, events, settle) -> None:
        conn.connect()
        await settle()
        channel = connector.latest(URL)

        channel.feed(["EOSE", "sub-1"])
        channel.feed(["NOTICE", "hi"])
        await settle()

        received = [e for e in events if isinstance(e, MessageReceived)]
        assert [json.loads(e.data)[0] for e in received] == ["EOSE", "NOTICE"]
        assert all(e.url == URL for e in received)
        conn.close()

    async def test_listener_errors_do_not_break_connection(self, connector, settle) -> None:
        def listener(_event):
            raise RuntimeError("listener bug")

        conn = RelayConnection(RelayEndpoint(URL), listener, connector=connector)
        conn.connect()
        await settle()
        connector.latest(URL).feed(["EOSE", "sub-1"])
        await settle()

        assert conn.is_open()
        conn.close()


# =============================================================================
# Reconnect
# =============================================================================


class TestReconnect:
    """Unrequested closes schedule exactly one reconnect."""

    async def test_remote_close_schedules_reconnect(self, conn, connector, events, settle) -> None:
        conn.connect()
        await settle()

        connector.latest(URL).drop()
        await settle()

        assert conn.state is ConnectionState.CLOSED
        assert conn.reconnect_pending
        assert events[-1] == ConnectionClosed(URL, requested=False)
        conn.close()

    async def test_reconnect_after_delay_not_before(self, conn, connector, settle) -> None:
        conn.connect()
        await settle()
        connector.latest(URL).drop()
        await settle()

        await asyncio.sleep(DELAY / 2)
        assert connector.call_count(URL) == 1

        await asyncio.sleep(DELAY)
        await settle()
        assert connector.call_count(URL) == 2
        assert conn.is_open()
        conn.close()

    async def test_open_failure_reconnects(self, conn, connector, events, settle) -> None:
        connector.failing.add(URL)
        conn.connect()
        await settle()

        assert conn.state is ConnectionState.CLOSED
        assert events == [ConnectionClosed(URL, requested=False)]
        assert conn.reconnect_pending

        connector.failing.clear()
        await asyncio.sleep(DELAY * 1.5)
        await settle()
        assert conn.is_open()
        conn.close()

    async def test_write_failure_reconnects(self, conn, connector, settle) -> None:
        conn.connect()
        await settle()
        channel = connector.latest(URL)
        channel.fail_send = True

        conn.send(["CLOSE", "sub-1"])
        await settle(20)

        assert channel.closed
        assert conn.state is ConnectionState.CLOSED
        assert conn.reconnect_pending
        conn.close()

    async def test_single_reconnect_per_close(self, conn, connector, settle) -> None:
        conn.connect()
        await settle()
        connector.latest(URL).drop()
        await settle()

        await asyncio.sleep(DELAY * 1.5)
        await settle()

        assert connector.call_count(URL) == 2
        conn.close()


class TestExplicitClose:
    """close() never triggers a reconnect."""

    async def test_close_open_connection(self, conn, connector, events, settle) -> None:
        conn.connect()
        await settle()
        channel = connector.latest(URL)

        conn.close()
        await conn.wait_closed()

        assert conn.state is ConnectionState.CLOSED
        assert channel.closed
        assert events[-1] == ConnectionClosed(URL, requested=True)
        assert not conn.reconnect_pending

        await asyncio.sleep(DELAY * 1.5)
        assert connector.call_count(URL) == 1

    async def test_close_cancels_pending_reconnect(self, conn, connector, settle) -> None:
        conn.connect()
        await settle()
        connector.latest(URL).drop()
        await settle()
        assert conn.reconnect_pending

        conn.close()

        assert not conn.reconnect_pending
        await asyncio.sleep(DELAY * 1.5)
        assert connector.call_count(URL) == 1

    async def test_close_while_connecting(self, conn, connector, events, settle) -> None:
        conn.connect()
        conn.close()
        await conn.wait_closed()
        await settle()

        assert conn.state is ConnectionState.CLOSED
        assert ConnectionOpened(URL) not in events

    async def test_close_is_idempotent(self, conn, events) -> None:
        conn.close()
        conn.close()
        assert events == []


class TestStateTransitions:
    """Refused transitions are logged and ignored."""

    async def test_closed_to_open_refused(self, conn, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert conn._set_state(ConnectionState.OPEN) is False
        assert conn.state is ConnectionState.CLOSED
        assert any(r.getMessage() == "invalid_state_transition" for r in caplog.records)

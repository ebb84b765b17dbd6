# tests/services/test_realtime_gateway.py
"""
Tests for the WebSocket gateway's room relay and lifecycle.
"""

import asyncio
from contextlib import asynccontextmanager
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import WebSocketDisconnect
import pytest

from sqlalchemy import inspect

from servicehub.auth import create_access_token
from servicehub.models.user import User
from servicehub.services.realtime.gateway import RealtimeConnection


class FakeBroadcast:
    def __init__(self, messages):
        self.messages = messages
        self.channels = []

    @asynccontextmanager
    async def subscribe(self, channel):
        self.channels.append(channel)

        async def _iterate():
            for message in self.messages:
                yield SimpleNamespace(message=message)

        yield _iterate()


def _connection():
    websocket = MagicMock()
    websocket.send_text = AsyncMock()
    websocket.accept = AsyncMock()
    websocket.close = AsyncMock()
    return RealtimeConnection(websocket, notification_service=MagicMock())


def _sent_frames(connection):
    return [json.loads(call.args[0]) for call in connection.websocket.send_text.call_args_list]


@pytest.mark.asyncio
async def test_relay_skips_own_events_and_bad_json():
    connection = _connection()
    own = json.dumps({"type": "receiveMessage", "payload": {"text": "mine"}, "origin": connection.connection_id})
    other = json.dumps({"type": "receiveMessage", "payload": {"text": "theirs"}, "origin": "someone"})
    fake = FakeBroadcast([own, "{broken", other])

    with patch("servicehub.services.realtime.gateway.get_broadcast", return_value=fake):
        await connection._relay("booking:1")

    assert fake.channels == ["booking:1"]
    assert _sent_frames(connection) == [{"event": "receiveMessage", "data": {"text": "theirs"}}]


@pytest.mark.asyncio
async def test_relay_without_broadcast_stops_quietly():
    connection = _connection()

    with patch(
        "servicehub.services.realtime.gateway.get_broadcast",
        side_effect=RuntimeError("Broadcast not initialized"),
    ):
        await connection._relay("broadcast:all")

    connection.websocket.send_text.assert_not_called()


@pytest.mark.asyncio
async def test_run_rejects_unauthenticated():
    connection = _connection()

    with patch.object(connection, "authenticate", AsyncMock(return_value=None)):
        await connection.run("bad-token")

    connection.websocket.close.assert_awaited_once_with(code=1008)
    connection.websocket.accept.assert_not_called()


@pytest.mark.asyncio
async def test_run_unsubscribes_on_disconnect():
    connection = _connection()
    connection.websocket.receive_text = AsyncMock(side_effect=WebSocketDisconnect(code=1000))
    user = SimpleNamespace(id="user-1", is_active=True)

    with patch.object(connection, "authenticate", AsyncMock(return_value=user)), patch(
        "servicehub.services.realtime.gateway.get_broadcast", return_value=FakeBroadcast([])
    ):
        await connection.run("token")

    connection.websocket.accept.assert_awaited_once()
    assert _sent_frames(connection)[0] == {"event": "connected", "data": {"user_id": "user-1"}}
    assert connection.rooms == {}


@pytest.mark.asyncio
async def test_non_object_frame():
    connection = _connection()
    connection.user = SimpleNamespace(id="user-1")

    await connection.dispatch("[1, 2]")
    await connection.dispatch(json.dumps({"event": "joinRoom", "data": "nope"}))

    messages = [frame["data"]["message"] for frame in _sent_frames(connection)]
    assert messages == ["Frame must be an object", "Frame data must be an object"]


class SlowBroadcast:
    """Registers a subscription only after a delay, then stays open."""

    def __init__(self):
        self.live = []

    @asynccontextmanager
    async def subscribe(self, channel):
        await asyncio.sleep(0.05)
        self.live.append(channel)

        async def _iterate():
            await asyncio.Event().wait()
            yield  # pragma: no cover

        try:
            yield _iterate()
        finally:
            self.live.remove(channel)


@pytest.mark.asyncio
async def test_join_acknowledged_after_subscription_is_live():
    connection = _connection()
    connection.user = SimpleNamespace(id="user-1")
    slow = SlowBroadcast()

    with patch("servicehub.services.realtime.gateway.get_broadcast", return_value=slow):
        await connection.dispatch(json.dumps({"event": "joinRoom", "data": {}}))
        live_at_ack = list(slow.live)
        await connection._unsubscribe_all()

    assert _sent_frames(connection) == [{"event": "joinedRoom", "data": {"room": "user:user-1"}}]
    assert live_at_ack == ["user:user-1"]
    assert slow.live == []


@pytest.mark.asyncio
async def test_authenticate_by_user_id_after_email_change(db, test_customer: User):
    token = create_access_token(data={"sub": "old.address@example.com", "user_id": test_customer.id})
    connection = _connection()

    user = await connection.authenticate(token)

    assert user is not None
    assert user.id == test_customer.id
    assert inspect(user).detached


@pytest.mark.asyncio
async def test_authenticate_rejects_garbage_token(db):
    assert await _connection().authenticate("not-a-jwt") is None

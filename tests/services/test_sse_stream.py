# tests/services/test_sse_stream.py
"""
Tests for the SSE stream against an in-memory Broadcaster.
"""

import json
from unittest.mock import patch

from broadcaster import Broadcast
import pytest

from servicehub.services.realtime.events import build_notification_event
from servicehub.services.realtime.sse_stream import create_sse_stream, format_room_event


def test_format_room_event_drops_origin():
    event = {"type": "receiveMessage", "timestamp": "t", "payload": {"text": "hi"}, "origin": "c1"}

    formatted = format_room_event(event)

    assert formatted["event"] == "receiveMessage"
    assert json.loads(formatted["data"]) == {
        "type": "receiveMessage",
        "timestamp": "t",
        "payload": {"text": "hi"},
    }


@pytest.mark.asyncio
async def test_stream_relays_room_events_and_heartbeats():
    broadcast = Broadcast("memory://")
    await broadcast.connect()
    try:
        with patch("servicehub.services.realtime.sse_stream.get_broadcast", return_value=broadcast):
            stream = create_sse_stream("user-1", ["user:user-1"], heartbeat_interval=0.05)

            connected = await stream.__anext__()
            assert connected["event"] == "connected"
            assert json.loads(connected["data"])["rooms"] == ["user:user-1"]

            # Subscriptions are in place once the first heartbeat arrives
            heartbeat = await stream.__anext__()
            assert heartbeat["event"] == "heartbeat"

            event = build_notification_event({"title": "Hello", "message": "World"})
            await broadcast.publish(channel="user:user-1", message=json.dumps(event))

            relayed = await stream.__anext__()
            while relayed["event"] == "heartbeat":
                relayed = await stream.__anext__()
            assert relayed["event"] == "notification"
            assert json.loads(relayed["data"])["payload"]["title"] == "Hello"

            await stream.aclose()
    finally:
        await broadcast.disconnect()


@pytest.mark.asyncio
async def test_stream_without_broadcast_reports_unavailable():
    with patch(
        "servicehub.services.realtime.sse_stream.get_broadcast",
        side_effect=RuntimeError("Broadcast not initialized"),
    ):
        events = [event async for event in create_sse_stream("user-1", ["user:user-1"])]

    assert [e["event"] for e in events] == ["connected", "error"]
    assert json.loads(events[1]["data"])["error"] == "service_unavailable"

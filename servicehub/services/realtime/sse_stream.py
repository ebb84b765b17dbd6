# servicehub/services/realtime/sse_stream.py
"""
SSE stream over the shared Broadcaster.

One stream subscribes to several rooms (the user's own room, the
announcement room and any booking rooms the caller asked for). Each
subscription gets a reader task that forwards into a single queue, so the
heartbeat timeout never cancels a Broadcaster iterator mid-read.

Event types on the wire:
- connected: first event, lists the subscribed rooms
- notification, receiveMessage, locationUpdate, announcement: relayed room events
- heartbeat: every ``sse_heartbeat_interval`` seconds of silence
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from datetime import datetime, timezone
import json
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

from ...core.broadcast import get_broadcast
from ...core.config import settings
from ...monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


def format_room_event(event: Dict[str, Any]) -> Dict[str, str]:
    """Format a room event for SSE output: the event name is the envelope type."""
    event_type = str(event.get("type", "message"))
    body = {
        "type": event_type,
        "timestamp": event.get("timestamp"),
        "payload": event.get("payload", {}),
    }
    return {"event": event_type, "data": json.dumps(body, default=str)}


def _heartbeat() -> Dict[str, str]:
    return {
        "event": "heartbeat",
        "data": json.dumps(
            {"type": "heartbeat", "timestamp": datetime.now(timezone.utc).isoformat()}
        ),
    }


async def create_sse_stream(
    user_id: str,
    rooms: List[str],
    heartbeat_interval: Optional[float] = None,
) -> AsyncGenerator[Dict[str, str], None]:
    """
    Create an SSE stream for a user.

    This function is DB-free: room authorization happens before calling so no
    session is held open for the life of the connection.

    Args:
        user_id: The user's ULID
        rooms: Broadcaster channels to relay
        heartbeat_interval: Override of settings.sse_heartbeat_interval

    Yields:
        SSE event dicts with keys: event, data
    """
    interval = heartbeat_interval or settings.sse_heartbeat_interval

    yield {
        "event": "connected",
        "data": json.dumps(
            {
                "user_id": user_id,
                "status": "connected",
                "rooms": rooms,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ),
    }

    prometheus_metrics.track_connection_open("sse")
    try:
        broadcast = get_broadcast()
        async with AsyncExitStack() as stack:
            message_queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue()

            async def reader_task(subscriber: Any) -> None:
                """Read from one subscriber and forward to the shared queue."""
                try:
                    async for event in subscriber:
                        await message_queue.put(("message", event))
                except Exception as e:
                    await message_queue.put(("error", e))
                finally:
                    await message_queue.put(("done", None))

            readers = []
            for room in rooms:
                subscriber = await stack.enter_async_context(broadcast.subscribe(channel=room))
                readers.append(asyncio.create_task(reader_task(subscriber)))
            logger.info(f"[SSE-STREAM] User {user_id} subscribed to {rooms}")

            try:
                while True:
                    try:
                        msg_type, data = await asyncio.wait_for(
                            message_queue.get(), timeout=interval
                        )
                    except asyncio.TimeoutError:
                        logger.debug(f"[SSE-HEARTBEAT] Sending heartbeat for user {user_id}")
                        yield _heartbeat()
                        continue

                    if msg_type == "message":
                        # Broadcaster returns Event objects with .channel and .message
                        try:
                            parsed_event = json.loads(data.message)
                        except json.JSONDecodeError as e:
                            logger.warning(f"[SSE-STREAM] Invalid JSON in message: {e}")
                            continue
                        yield format_room_event(parsed_event)
                    elif msg_type == "error":
                        logger.error(f"[SSE-STREAM] Reader error for user {user_id}: {data}")
                        break
                    elif msg_type == "done":
                        logger.info(f"[SSE-STREAM] Subscription ended for user {user_id}")
                        break
            finally:
                for reader in readers:
                    reader.cancel()
                for reader in readers:
                    try:
                        await reader
                    except asyncio.CancelledError:
                        pass

    except asyncio.CancelledError:
        logger.info(f"[SSE-STREAM] Stream cancelled for user {user_id}")
        raise
    except RuntimeError as e:
        # Broadcast not initialized
        logger.error(f"[SSE-STREAM] Broadcast error for user {user_id}: {e}")
        yield {
            "event": "error",
            "data": json.dumps(
                {
                    "error": "service_unavailable",
                    "message": "Real-time service temporarily unavailable",
                }
            ),
        }
    finally:
        prometheus_metrics.track_connection_close("sse")

    logger.info(f"[SSE-STREAM] User {user_id} unsubscribed from {rooms}")

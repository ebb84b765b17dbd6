# servicehub/services/realtime/publisher.py
"""
Room publishing for realtime events.

Rooms are Broadcaster channels:
- user:{user_id}        per-user notifications
- booking:{booking_id}  chat and location for one booking
- broadcast:all         announcements to every connected client

Publishing is fire-and-forget: failures are logged and reported through
the return value, never raised, so a realtime outage cannot fail the
request that triggered it.

Celery workers have no event loop or Broadcaster, so they publish with a
plain Redis PUBLISH on the same channel names (``publish_sync``).
"""

import json
import logging
from typing import Any, Dict

from redis.exceptions import RedisError

from ...core.broadcast import get_broadcast
from ...core.redis import get_redis_client
from ...monitoring.prometheus_metrics import prometheus_metrics
from .events import build_announcement_event, build_notification_event

logger = logging.getLogger(__name__)

BROADCAST_ROOM = "broadcast:all"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def booking_room(booking_id: str) -> str:
    return f"booking:{booking_id}"


def _serialize(event: Dict[str, Any]) -> str:
    return json.dumps(event, default=str)


async def publish_to_room(room: str, event: Dict[str, Any]) -> bool:
    """
    Publish an event to a room via the shared Broadcaster.

    Returns:
        True when the event was handed to the backend
    """
    event_type = str(event.get("type", "unknown"))
    try:
        broadcast = get_broadcast()
        await broadcast.publish(channel=room, message=_serialize(event))
        logger.debug(f"[PUBLISH] {event_type} -> {room}")
        prometheus_metrics.record_realtime_publish(event_type, "success")
        return True
    except RuntimeError as e:
        # Broadcast not initialized
        logger.warning(f"[PUBLISH] Broadcast not initialized, cannot publish to {room}: {e}")
    except Exception as e:
        logger.error(f"[PUBLISH] Failed to publish to {room}: {e}")
    prometheus_metrics.record_realtime_publish(event_type, "error")
    return False


async def notify_user(user_id: str, notification: Dict[str, Any]) -> bool:
    """Send a notification to one user's room."""
    return await publish_to_room(user_room(user_id), build_notification_event(notification))


async def broadcast_all(notification: Dict[str, Any]) -> bool:
    """Send an announcement to every connected client."""
    return await publish_to_room(BROADCAST_ROOM, build_announcement_event(notification))


def publish_sync(room: str, event: Dict[str, Any]) -> bool:
    """Publish from a sync context (Celery workers) with a direct Redis PUBLISH."""
    event_type = str(event.get("type", "unknown"))
    try:
        receivers = get_redis_client().publish(room, _serialize(event))
        logger.debug(f"[PUBLISH] {event_type} -> {room} ({receivers} receivers)")
        prometheus_metrics.record_realtime_publish(event_type, "success")
        return True
    except RedisError as e:
        logger.error(f"[PUBLISH] Redis publish to {room} failed: {e}")
        prometheus_metrics.record_realtime_publish(event_type, "error")
        return False


def notify_user_sync(user_id: str, notification: Dict[str, Any]) -> bool:
    return publish_sync(user_room(user_id), build_notification_event(notification))

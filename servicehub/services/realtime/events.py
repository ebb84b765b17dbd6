# servicehub/services/realtime/events.py
"""
Realtime event type definitions and builders.

All events follow this structure:
{
    "type": str,           # Event type identifier
    "timestamp": str,      # ISO 8601 timestamp
    "payload": dict,       # Event-specific data
    "origin": str,         # Optional id of the connection that produced it
}
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class EventType(str, Enum):
    """Valid realtime event types."""

    NOTIFICATION = "notification"
    RECEIVE_MESSAGE = "receiveMessage"
    LOCATION_UPDATE = "locationUpdate"
    ANNOUNCEMENT = "announcement"


def build_event(
    event_type: EventType, payload: Dict[str, Any], origin: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a properly structured event.

    Args:
        event_type: The type of event
        payload: Event-specific payload data
        origin: Connection id of the sender, so it can skip its own echo

    Returns:
        Complete event dict ready for publishing
    """
    event: Dict[str, Any] = {
        "type": event_type.value,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "payload": payload,
    }
    if origin:
        event["origin"] = origin
    return event


def build_notification_event(notification: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a notification payload ({title, message, timestamp, data})."""
    return build_event(EventType.NOTIFICATION, notification)


def build_announcement_event(notification: Dict[str, Any]) -> Dict[str, Any]:
    return build_event(EventType.ANNOUNCEMENT, notification)


def build_receive_message_event(
    message: Dict[str, Any], origin: Optional[str] = None
) -> Dict[str, Any]:
    """Build a receiveMessage event carrying a serialized chat message."""
    return build_event(EventType.RECEIVE_MESSAGE, message, origin=origin)


def build_location_update_event(
    booking_id: str,
    provider_id: str,
    latitude: float,
    longitude: float,
    origin: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a locationUpdate event."""
    return build_event(
        EventType.LOCATION_UPDATE,
        {
            "booking_id": booking_id,
            "provider_id": provider_id,
            "latitude": latitude,
            "longitude": longitude,
        },
        origin=origin,
    )

# servicehub/routes/v1/realtime.py
"""
Realtime routes - API v1

Endpoints:
    GET /stream                          → Server-Sent Events for the caller
    WS  /ws?token=...                    → WebSocket gateway (rooms, chat, location)

EventSource and WebSocket clients cannot set headers, so both accept the
JWT as a ``token`` query parameter.

Neither endpoint depends on ``get_db``: FastAPI only cleans up yield
dependencies once the response ends, which for a stream is when the client
leaves. Authentication and room checks use short-lived sessions instead.
"""

import asyncio
import logging
from typing import AsyncGenerator, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, WebSocket
from sse_starlette.sse import EventSourceResponse

from ...api.dependencies.auth import get_current_user_stream
from ...core.exceptions import DomainException, handle_domain_exception
from ...database import get_db_session
from ...models.user import User
from ...services.message_service import MessageService
from ...services.realtime import publisher
from ...services.realtime.gateway import RealtimeConnection
from ...services.realtime.sse_stream import create_sse_stream

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime-v1"])


def _authorize_booking_rooms(user_id: str, booking_ids: List[str]) -> List[str]:
    """Booking rooms ``user_id`` may listen to; raises on the first foreign booking."""
    with get_db_session() as db:
        message_service = MessageService(db)
        return [
            publisher.booking_room(message_service.get_participant_booking(booking_id, user_id).id)
            for booking_id in booking_ids
        ]


@router.get("/stream")
async def stream_events(
    request: Request,
    booking_id: Optional[List[str]] = Query(None),
    current_user: User = Depends(get_current_user_stream),
) -> EventSourceResponse:
    """
    Stream notifications, announcements and any requested booking rooms.

    Booking rooms are authorized up front; the stream itself holds no
    database session.
    """
    user_id = current_user.id
    rooms = [publisher.user_room(user_id), publisher.BROADCAST_ROOM]
    try:
        rooms += await asyncio.to_thread(
            _authorize_booking_rooms, user_id, list(dict.fromkeys(booking_id or []))
        )
    except DomainException as e:
        handle_domain_exception(e)

    logger.info(f"[SSE-STREAM] Connection for user {user_id}")

    async def event_generator() -> AsyncGenerator[Dict[str, str], None]:
        async for event in create_sse_stream(user_id, rooms):
            if await request.is_disconnected():
                logger.info(f"[SSE-STREAM] Client {user_id} disconnected")
                break
            yield event

    return EventSourceResponse(
        event_generator(),
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )


@router.websocket("/ws")
async def websocket_gateway(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
) -> None:
    connection = RealtimeConnection(websocket)
    await connection.run(token)

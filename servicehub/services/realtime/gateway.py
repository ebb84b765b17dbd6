# servicehub/services/realtime/gateway.py
"""
WebSocket gateway for realtime rooms.

Client frames are ``{"event": str, "data": {...}}``:
- joinRoom / leaveRoom          the caller's own user room
- joinChatRoom / leaveChatRoom  a booking room (participants only)
- sendMessage                   {booking_id, text}
- updateLocation                {booking_id, latitude, longitude} (booking's provider only)

Server frames use the same shape. Room events are relayed with the
envelope type as the event name; failures come back as ``{"event": "error"}``
and never close the socket. Each joined room is a Broadcaster
subscription driven by its own task; ``joinedRoom`` is only sent once that
subscription is live. Events whose ``origin`` is this connection are not
echoed back.

The connection holds no database session. Authentication and every frame
that touches the database use a short-lived session of their own.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
import uuid

from fastapi import WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field, ValidationError

from ...auth import claims_from_token
from ...core.broadcast import get_broadcast
from ...core.exceptions import DomainException, ForbiddenException, NotFoundException
from ...database import get_db_session
from ...models.user import User
from ...monitoring.prometheus_metrics import prometheus_metrics
from ...repositories.factory import RepositoryFactory
from ...schemas.message import SendMessageRequest
from ..auth_service import load_token_user
from ..message_service import MessageService, serialize_message
from ..notification_service import NotificationService
from . import publisher
from .events import build_location_update_event, build_receive_message_event

logger = logging.getLogger(__name__)


class RoomRequest(BaseModel):
    user_id: Optional[str] = None


class ChatRoomRequest(BaseModel):
    booking_id: str = Field(..., min_length=1)


class ChatMessageFrame(ChatRoomRequest):
    text: str


class LocationFrame(ChatRoomRequest):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class GatewayError(Exception):
    """A client-visible error for one frame."""

    def __init__(self, message: str, code: str = "bad_request") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class RealtimeConnection:
    """One authenticated WebSocket connection and its room subscriptions."""

    def __init__(
        self,
        websocket: WebSocket,
        notification_service: Optional[NotificationService] = None,
    ) -> None:
        self.websocket = websocket
        self.notification_service = notification_service or NotificationService()
        self.connection_id = uuid.uuid4().hex
        self.user: Optional[User] = None
        self.rooms: Dict[str, asyncio.Task] = {}
        self._send_lock = asyncio.Lock()
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
            "joinRoom": self.join_own_room,
            "leaveRoom": self.leave_own_room,
            "joinChatRoom": self.join_chat_room,
            "leaveChatRoom": self.leave_chat_room,
            "sendMessage": self.send_message,
            "updateLocation": self.update_location,
        }

    # ==========================================
    # Lifecycle
    # ==========================================

    async def authenticate(self, token: Optional[str]) -> Optional[User]:
        claims = claims_from_token(token)
        if not claims:
            return None
        user = await asyncio.to_thread(load_token_user, claims)
        if not user or not user.is_active:
            return None
        return user

    async def run(self, token: Optional[str]) -> None:
        """Authenticate, accept, then serve frames until the client goes away."""
        self.user = await self.authenticate(token)
        if self.user is None:
            logger.info("[WS] Rejected connection with missing or invalid token")
            await self.websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await self.websocket.accept()
        prometheus_metrics.track_connection_open("ws")
        logger.info(f"[WS] User {self.user.id} connected ({self.connection_id})")
        try:
            await self._subscribe(publisher.BROADCAST_ROOM)
            await self.send("connected", {"user_id": self.user.id})
            while True:
                raw = await self.websocket.receive_text()
                await self.dispatch(raw)
        except WebSocketDisconnect:
            logger.info(f"[WS] User {self.user.id} disconnected ({self.connection_id})")
        finally:
            await self._unsubscribe_all()
            prometheus_metrics.track_connection_close("ws")

    async def dispatch(self, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON frame")
            return
        if not isinstance(frame, dict):
            await self.send_error("Frame must be an object")
            return

        event = frame.get("event")
        handler = self._handlers.get(event) if isinstance(event, str) else None
        if handler is None:
            await self.send_error(f"Unknown event: {event}", code="unknown_event")
            return

        data = frame.get("data") or {}
        if not isinstance(data, dict):
            await self.send_error("Frame data must be an object")
            return
        try:
            await handler(data)
        except ValidationError as e:
            await self.send_error(e.errors()[0].get("msg", "Invalid data"), code="validation_error")
        except GatewayError as e:
            await self.send_error(e.message, code=e.code)
        except DomainException as e:
            await self.send_error(e.message, code=e.code)

    # ==========================================
    # Outbound
    # ==========================================

    async def send(self, event: str, data: Any) -> None:
        async with self._send_lock:
            await self.websocket.send_text(json.dumps({"event": event, "data": data}, default=str))

    async def send_error(self, message: str, code: str = "bad_request") -> None:
        await self.send("error", {"message": message, "code": code})

    async def _relay(self, room: str, ready: Optional[asyncio.Event] = None) -> None:
        """Forward one room's events to this socket until cancelled."""
        try:
            async with get_broadcast().subscribe(channel=room) as subscriber:
                if ready is not None:
                    ready.set()
                async for message in subscriber:
                    try:
                        event = json.loads(message.message)
                    except json.JSONDecodeError as e:
                        logger.warning(f"[WS] Invalid JSON on {room}: {e}")
                        continue
                    if event.get("origin") == self.connection_id:
                        continue
                    await self.send(event.get("type", "message"), event.get("payload", {}))
        except asyncio.CancelledError:
            raise
        except RuntimeError as e:
            logger.error(f"[WS] Broadcast unavailable for {room}: {e}")
        except Exception as e:
            logger.error(f"[WS] Relay for {room} stopped: {e}")
        finally:
            # Unblocks _subscribe when the relay could not start
            if ready is not None:
                ready.set()

    async def _subscribe(self, room: str) -> bool:
        """Start relaying ``room`` and return once its subscription is registered."""
        if room in self.rooms:
            return False
        ready = asyncio.Event()
        self.rooms[room] = asyncio.create_task(self._relay(room, ready))
        await ready.wait()
        logger.debug(f"[WS] {self.connection_id} joined {room}")
        return True

    async def _unsubscribe(self, room: str) -> bool:
        task = self.rooms.pop(room, None)
        if task is None:
            return False
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(f"[WS] {self.connection_id} left {room}")
        return True

    async def _unsubscribe_all(self) -> None:
        for room in list(self.rooms):
            await self._unsubscribe(room)

    # ==========================================
    # Database work (one short-lived session per frame)
    # ==========================================

    def _authorize_booking(self, booking_id: str) -> str:
        assert self.user is not None
        with get_db_session() as db:
            booking = MessageService(db).get_participant_booking(booking_id, self.user.id)
            return booking.id

    def _persist_message(self, booking_id: str, text: str) -> Tuple[Dict[str, Any], str]:
        """Store the message; returns its wire form and the receiver id."""
        assert self.user is not None
        with get_db_session() as db:
            sender = RepositoryFactory.create_user_repository(db).get_by_id(
                self.user.id, load_relationships=False
            )
            if sender is None:
                raise NotFoundException("User not found")
            message, _ = MessageService(db).send_message(booking_id, sender, text)
            return serialize_message(message), message.receiver_id

    def _location_booking(self, booking_id: str) -> str:
        assert self.user is not None
        with get_db_session() as db:
            booking = RepositoryFactory.create_booking_repository(db).get_by_id(
                booking_id, load_relationships=False
            )
            if not booking:
                raise NotFoundException("Booking not found")
            if booking.provider_id != self.user.id:
                raise ForbiddenException("Only the assigned provider can share location")
            return booking.id

    # ==========================================
    # Handlers
    # ==========================================

    def _own_room(self, data: Dict[str, Any]) -> str:
        assert self.user is not None
        request = RoomRequest.model_validate(data)
        if request.user_id and request.user_id != self.user.id:
            raise GatewayError("You can only join your own room", code="forbidden")
        return publisher.user_room(self.user.id)

    async def join_own_room(self, data: Dict[str, Any]) -> None:
        room = self._own_room(data)
        await self._subscribe(room)
        await self.send("joinedRoom", {"room": room})

    async def leave_own_room(self, data: Dict[str, Any]) -> None:
        room = self._own_room(data)
        await self._unsubscribe(room)
        await self.send("leftRoom", {"room": room})

    async def join_chat_room(self, data: Dict[str, Any]) -> None:
        request = ChatRoomRequest.model_validate(data)
        booking_id = await asyncio.to_thread(self._authorize_booking, request.booking_id)
        room = publisher.booking_room(booking_id)
        await self._subscribe(room)
        await self.send("joinedRoom", {"room": room})

    async def leave_chat_room(self, data: Dict[str, Any]) -> None:
        request = ChatRoomRequest.model_validate(data)
        room = publisher.booking_room(request.booking_id)
        await self._unsubscribe(room)
        await self.send("leftRoom", {"room": room})

    async def send_message(self, data: Dict[str, Any]) -> None:
        assert self.user is not None
        frame = ChatMessageFrame.model_validate(data)
        text = SendMessageRequest(text=frame.text).text

        payload, receiver_id = await asyncio.to_thread(
            self._persist_message, frame.booking_id, text
        )

        await publisher.publish_to_room(
            publisher.booking_room(payload["booking_id"]),
            build_receive_message_event(payload, origin=self.connection_id),
        )
        await self.notification_service.send(
            receiver_id,
            self.notification_service.chat_message(payload["booking_id"], self.user.name),
        )
        await self.send("messageSent", payload)

    async def update_location(self, data: Dict[str, Any]) -> None:
        assert self.user is not None
        frame = LocationFrame.model_validate(data)
        booking_id = await asyncio.to_thread(self._location_booking, frame.booking_id)

        await publisher.publish_to_room(
            publisher.booking_room(booking_id),
            build_location_update_event(
                booking_id,
                self.user.id,
                frame.latitude,
                frame.longitude,
                origin=self.connection_id,
            ),
        )

# servicehub/routes/v1/chat.py
"""
Chat routes - API v1

Booking-scoped chat between the customer and the provider.

Endpoints:
    GET /conversations                   → One summary per booking of the caller
    GET /unread-count                    → Messages addressed to the caller, unread
    GET /{booking_id}/messages           → One page of the chat (marks read)
    POST /{booking_id}/messages          → Send a message to the other participant
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies.auth import get_current_active_user
from ...api.dependencies.services import get_message_service, get_notification_service
from ...core.constants import DEFAULT_CHAT_PAGE_SIZE, MAX_CHAT_PAGE_SIZE
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.user import User
from ...schemas.message import (
    ChatMessageResponse,
    ConversationLastMessage,
    ConversationResponse,
    ConversationUser,
    MessageListResponse,
    SendMessageRequest,
    SendMessageResponse,
    UnreadCountResponse,
)
from ...services.message_service import MessageService, serialize_message
from ...services.notification_service import NotificationService
from ...services.realtime import publisher
from ...services.realtime.events import build_receive_message_event

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat-v1"])


@router.get("/conversations", response_model=List[ConversationResponse])
async def list_conversations(
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service),
) -> List[ConversationResponse]:
    try:
        conversations = await asyncio.to_thread(message_service.list_conversations, current_user)
    except DomainException as e:
        handle_domain_exception(e)

    return [
        ConversationResponse(
            booking_id=c["booking_id"],
            other_user=ConversationUser(**c["other_user"]),
            last_message=(
                ConversationLastMessage.model_validate(c["last_message"])
                if c["last_message"] is not None
                else None
            ),
            unread_count=c["unread_count"],
            booking_status=c["booking_status"],
        )
        for c in conversations
    ]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service),
) -> UnreadCountResponse:
    try:
        count = await asyncio.to_thread(message_service.unread_count, current_user)
    except DomainException as e:
        handle_domain_exception(e)
    return UnreadCountResponse(unread_count=count)


@router.get("/{booking_id}/messages", response_model=MessageListResponse)
async def get_messages(
    booking_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_CHAT_PAGE_SIZE, ge=1, le=MAX_CHAT_PAGE_SIZE),
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service),
) -> MessageListResponse:
    try:
        result = await asyncio.to_thread(
            message_service.get_messages, booking_id, current_user, page, limit
        )
    except DomainException as e:
        handle_domain_exception(e)

    return MessageListResponse(
        messages=[ChatMessageResponse.from_message(m) for m in result["messages"]],
        total=result["total"],
        total_pages=result["total_pages"],
        current_page=result["current_page"],
    )


@router.post(
    "/{booking_id}/messages",
    response_model=SendMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    booking_id: str,
    payload: SendMessageRequest,
    current_user: User = Depends(get_current_active_user),
    message_service: MessageService = Depends(get_message_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> SendMessageResponse:
    """Persist the message, relay it to the booking room and notify the receiver."""
    try:
        message, booking = await asyncio.to_thread(
            message_service.send_message, booking_id, current_user, payload.text
        )
    except DomainException as e:
        handle_domain_exception(e)

    await publisher.publish_to_room(
        publisher.booking_room(booking.id),
        build_receive_message_event(serialize_message(message)),
    )
    await notification_service.send(
        message.receiver_id, notification_service.chat_message(booking.id, current_user.name)
    )
    return SendMessageResponse(
        message="Message sent successfully",
        data=ChatMessageResponse.from_message(message),
    )

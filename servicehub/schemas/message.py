"""Chat message schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_MESSAGE_LENGTH
from ..models.message import Message
from ._strict_base import StrictModel, StrictRequestModel
from .base import StandardizedModel


class SendMessageRequest(StrictRequestModel):
    text: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message text cannot be empty")
        return v


class ChatMessageResponse(StandardizedModel):
    id: str
    booking_id: str
    sender_id: str
    receiver_id: str
    sender_name: Optional[str] = None
    text: str
    is_read: bool
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> "ChatMessageResponse":
        response = cls.model_validate(message)
        if message.sender is not None:
            response.sender_name = message.sender.name
        return response


class MessageListResponse(StrictModel):
    messages: List[ChatMessageResponse]
    total: int
    total_pages: int
    current_page: int


class SendMessageResponse(StrictModel):
    message: str
    data: ChatMessageResponse


class UnreadCountResponse(StrictModel):
    unread_count: int


class ConversationUser(StrictModel):
    id: str
    name: str
    profile_image: Optional[str] = None
    service_type: Optional[str] = None


class ConversationLastMessage(StandardizedModel):
    text: str
    sender_id: str
    created_at: datetime


class ConversationResponse(StrictModel):
    booking_id: str
    other_user: ConversationUser
    last_message: Optional[ConversationLastMessage] = None
    unread_count: int
    booking_status: str

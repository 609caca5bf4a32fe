# portal_messaging/api/schemas/message_schema.py

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, Field, field_serializer

from portal_messaging.api.schemas._camel_model import CamelModel
from portal_messaging.api.schemas._datetime_serializer import serialize_dt
from portal_messaging.api.schemas.user_schema import UserSummaryResponse
from portal_messaging.entities.message import MessageStatus, MessageType


class AttachmentResponse(CamelModel):
    url: str
    name: str
    mime_type: str
    size: int
    is_image: bool


class ReactionGroupResponse(CamelModel):
    emoji: str
    users: List[UserSummaryResponse] = []
    count: int
    has_current_user_reacted: bool


class ReplyPreviewResponse(CamelModel):
    id: int
    sender_id: int
    sender: UserSummaryResponse
    content: str
    message_type: MessageType
    attachment: Optional[AttachmentResponse] = None
    sent_at: datetime
    is_edited: bool
    is_deleted: bool

    @field_serializer("sent_at")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class MessageResponse(CamelModel):
    id: int
    conversation_id: int
    sender_id: int
    sender: UserSummaryResponse
    content: str
    message_type: MessageType
    attachment: Optional[AttachmentResponse] = None

    sent_at: datetime
    edited_at: Optional[datetime] = None
    is_edited: bool
    is_deleted: bool
    is_system: bool
    is_read: bool
    read_at: Optional[datetime] = None

    reply_to_message_id: Optional[int] = None
    reply_to: Optional[ReplyPreviewResponse] = None
    reactions: List[ReactionGroupResponse] = []

    is_sent_by_current_user: bool
    status: Optional[MessageStatus] = None

    @field_serializer("sent_at", "edited_at", "read_at")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class SendMessageRequest(CamelModel):
    conversation_id: int
    content: Optional[str] = None
    message_type: MessageType = Field(
        default=MessageType.TEXT,
        validation_alias=AliasChoices("type", "messageType", "message_type"),
    )
    reply_to_message_id: Optional[int] = None


class EditMessageRequest(CamelModel):
    content: str


class AddReactionRequest(CamelModel):
    emoji: str


class SearchMessagesQuery(CamelModel):
    query: Optional[str] = None
    conversation_id: Optional[int] = None
    message_type: Optional[MessageType] = Field(
        default=None,
        validation_alias=AliasChoices("type", "messageType", "message_type"),
    )
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    page: int = 1
    page_size: int = 20


class MessagesPageQuery(CamelModel):
    page: int = 1
    page_size: int = 50
    before: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("before", "beforeMessageId", "before_message_id"),
    )

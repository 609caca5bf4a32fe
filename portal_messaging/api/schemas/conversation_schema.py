# portal_messaging/api/schemas/conversation_schema.py
from datetime import datetime
from typing import List, Optional

from pydantic import field_serializer

from portal_messaging.api.schemas._camel_model import CamelModel
from portal_messaging.api.schemas._datetime_serializer import serialize_dt
from portal_messaging.api.schemas.message_schema import MessageResponse
from portal_messaging.api.schemas.user_schema import UserSummaryResponse


class ProjectResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None


class ParticipantStatusResponse(CamelModel):
    last_read_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    is_muted: bool
    is_archived: bool
    is_pinned: bool

    @field_serializer("last_read_at", "last_seen_at")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class ConversationResponse(CamelModel):
    id: int
    freelancer_id: int
    client_id: int
    project_id: Optional[int] = None
    subject: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    last_message_at: Optional[datetime] = None
    is_active: bool

    freelancer: UserSummaryResponse
    client: UserSummaryResponse
    other_participant: UserSummaryResponse
    project: Optional[ProjectResponse] = None
    last_message: Optional[MessageResponse] = None
    unread_count: int
    current_user_status: ParticipantStatusResponse

    @field_serializer("created_at", "updated_at", "last_message_at")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class ConversationSummaryResponse(CamelModel):
    id: int
    other_participant: UserSummaryResponse
    project: Optional[ProjectResponse] = None
    subject: Optional[str] = None
    last_message: Optional[MessageResponse] = None
    unread_count: int
    last_activity: datetime
    is_pinned: bool
    is_muted: bool
    is_archived: bool

    @field_serializer("last_activity")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class MessagesPageResponse(CamelModel):
    messages: List[MessageResponse] = []
    total_count: int
    page: int
    page_size: int
    has_next_page: bool
    has_previous_page: bool
    conversation: ConversationResponse


class MessageStatsResponse(CamelModel):
    total_conversations: int
    active_conversations: int
    unread_conversations: int
    total_messages: int
    unread_messages: int
    last_activity: Optional[datetime] = None
    recent_conversations: List[ConversationSummaryResponse] = []

    @field_serializer("last_activity")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)


class StartConversationRequest(CamelModel):
    participant_id: int
    initial_message: str
    subject: Optional[str] = None
    project_id: Optional[int] = None


class UpdateConversationSettingsRequest(CamelModel):
    is_muted: Optional[bool] = None
    is_archived: Optional[bool] = None
    is_pinned: Optional[bool] = None


class MarkReadRequest(CamelModel):
    last_message_id: Optional[int] = None


class ListConversationsQuery(CamelModel):
    include_archived: bool = False

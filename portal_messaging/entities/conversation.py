# portal_messaging/entities/conversation.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from portal_messaging.entities.message import MessageView
from portal_messaging.entities.user import UserSummary


@dataclass(frozen=True)
class ProjectSummary:
    id: int
    title: str
    description: Optional[str]


@dataclass(frozen=True)
class ParticipantStatus:
    last_read_at: Optional[datetime]
    last_seen_at: Optional[datetime]
    is_muted: bool
    is_archived: bool
    is_pinned: bool


@dataclass(frozen=True)
class ConversationView:
    id: int
    freelancer_id: int
    client_id: int
    project_id: Optional[int]
    subject: Optional[str]
    created_at: datetime
    updated_at: datetime
    last_message_at: Optional[datetime]
    is_active: bool
    freelancer: UserSummary
    client: UserSummary
    other_participant: UserSummary
    project: Optional[ProjectSummary]
    last_message: Optional[MessageView]
    unread_count: int
    current_user_status: ParticipantStatus


@dataclass(frozen=True)
class ConversationSummary:
    id: int
    other_participant: UserSummary
    project: Optional[ProjectSummary]
    subject: Optional[str]
    last_message: Optional[MessageView]
    unread_count: int
    last_activity: datetime
    is_pinned: bool
    is_muted: bool
    is_archived: bool


@dataclass(frozen=True)
class MessagesPage:
    messages: list[MessageView]
    total_count: int
    page: int
    page_size: int
    has_next_page: bool
    has_previous_page: bool
    conversation: ConversationView


@dataclass(frozen=True)
class MessageStats:
    total_conversations: int
    active_conversations: int
    unread_conversations: int
    total_messages: int
    unread_messages: int
    last_activity: Optional[datetime]
    recent_conversations: list[ConversationSummary] = field(default_factory=list)

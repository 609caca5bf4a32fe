# portal_messaging/core/interfaces/message_notifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class MessageCreatedEvent:
    conversation_id: int
    message_id: int
    sender_id: int
    message_type: str
    preview: str
    sent_at_iso: str
    has_attachment: bool = False
    reply_to_message_id: int | None = None


@dataclass(frozen=True)
class MessageUpdatedEvent:
    conversation_id: int
    message_id: int
    sender_id: int
    content: str
    edited_at_iso: str


@dataclass(frozen=True)
class MessageDeletedEvent:
    conversation_id: int
    message_id: int
    deleted_by: int
    placeholder: str
    deleted_at_iso: str


@dataclass(frozen=True)
class MessageReactionsChangedEvent:
    conversation_id: int
    message_id: int
    changed_by: int
    # [{emoji, count, user_ids}]
    reactions: list[dict[str, Any]]


class MessageNotifier(Protocol):
    def notify_message_created(self, event: MessageCreatedEvent) -> None:
        ...

    def notify_message_updated(self, event: MessageUpdatedEvent) -> None:
        ...

    def notify_message_deleted(self, event: MessageDeletedEvent) -> None:
        ...

    def notify_reactions_changed(self, event: MessageReactionsChangedEvent) -> None:
        ...

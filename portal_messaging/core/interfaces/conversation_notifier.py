# portal_messaging/core/interfaces/conversation_notifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ConversationCreatedEvent:
    conversation_id: int
    freelancer_id: int
    client_id: int
    project_id: int | None
    subject: str | None
    created_by: int
    created_at_iso: str


@dataclass(frozen=True)
class ConversationReadEvent:
    conversation_id: int
    user_id: int
    last_read_at_iso: str


class ConversationNotifier(Protocol):
    def notify_conversation_created(self, event: ConversationCreatedEvent) -> None:
        ...

    def notify_conversation_read(self, event: ConversationReadEvent) -> None:
        ...

# portal_messaging/infrastructure/realtime/socketio_message_notifier.py
from __future__ import annotations

import logging
from typing import Any

from portal_messaging.core.interfaces.message_notifier import (
    MessageCreatedEvent,
    MessageDeletedEvent,
    MessageNotifier,
    MessageReactionsChangedEvent,
    MessageUpdatedEvent,
)
from portal_messaging.infrastructure.realtime.socketio_server import socketio

logger = logging.getLogger(__name__)


class SocketIOMessageNotifier(MessageNotifier):
    def _emit(self, event_name: str, conversation_id: int, payload: dict[str, Any]) -> None:
        # best-effort: falha de push nunca derruba a requisição
        try:
            socketio.emit(event_name, payload, room=f"conversation:{conversation_id}")
        except Exception:
            logger.warning("Socket.IO emit failed: %s (conversation %s)", event_name, conversation_id, exc_info=True)

    def notify_message_created(self, event: MessageCreatedEvent) -> None:
        payload = {
            "conversationId": event.conversation_id,
            "messageId": event.message_id,
            "senderId": event.sender_id,
            "messageType": event.message_type,
            "preview": event.preview,
            "sentAt": event.sent_at_iso,
            "hasAttachment": bool(event.has_attachment),
        }
        if event.reply_to_message_id is not None:
            payload["replyToMessageId"] = int(event.reply_to_message_id)

        self._emit("message:new", event.conversation_id, payload)

    def notify_message_updated(self, event: MessageUpdatedEvent) -> None:
        payload = {
            "conversationId": event.conversation_id,
            "messageId": event.message_id,
            "senderId": event.sender_id,
            "content": event.content,
            "editedAt": event.edited_at_iso,
        }
        self._emit("message:updated", event.conversation_id, payload)

    def notify_message_deleted(self, event: MessageDeletedEvent) -> None:
        payload = {
            "conversationId": event.conversation_id,
            "messageId": event.message_id,
            "deletedBy": event.deleted_by,
            "content": event.placeholder,
            "deletedAt": event.deleted_at_iso,
        }
        self._emit("message:deleted", event.conversation_id, payload)

    def notify_reactions_changed(self, event: MessageReactionsChangedEvent) -> None:
        payload = {
            "conversationId": event.conversation_id,
            "messageId": event.message_id,
            "changedBy": event.changed_by,
            "reactions": event.reactions,
        }
        self._emit("message:reactions", event.conversation_id, payload)

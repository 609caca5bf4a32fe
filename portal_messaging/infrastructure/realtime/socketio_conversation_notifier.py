# portal_messaging/infrastructure/realtime/socketio_conversation_notifier.py
from __future__ import annotations

import logging

from portal_messaging.core.interfaces.conversation_notifier import (
    ConversationCreatedEvent,
    ConversationNotifier,
    ConversationReadEvent,
)
from portal_messaging.infrastructure.realtime.socketio_server import socketio

logger = logging.getLogger(__name__)


class SocketIOConversationNotifier(ConversationNotifier):
    def notify_conversation_created(self, event: ConversationCreatedEvent) -> None:
        payload = {
            "conversationId": event.conversation_id,
            "freelancerId": event.freelancer_id,
            "clientId": event.client_id,
            "projectId": event.project_id,
            "subject": event.subject,
            "createdBy": event.created_by,
            "createdAt": event.created_at_iso,
        }
        # a conversa ainda não tem room com ouvintes: avisa os dois usuários
        try:
            for user_id in (event.freelancer_id, event.client_id):
                socketio.emit("conversation:new", payload, room=f"user:{user_id}")
        except Exception:
            logger.warning("Socket.IO emit failed: conversation:new (%s)", event.conversation_id, exc_info=True)

    def notify_conversation_read(self, event: ConversationReadEvent) -> None:
        payload = {
            "conversationId": event.conversation_id,
            "userId": event.user_id,
            "lastReadAt": event.last_read_at_iso,
        }
        try:
            socketio.emit("conversation:read", payload, room=f"conversation:{event.conversation_id}")
        except Exception:
            logger.warning("Socket.IO emit failed: conversation:read (%s)", event.conversation_id, exc_info=True)

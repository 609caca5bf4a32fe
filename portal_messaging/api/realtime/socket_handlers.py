# portal_messaging/api/realtime/socket_handlers.py
from __future__ import annotations

import logging

from flask import request
from flask_socketio import disconnect, emit, join_room, leave_room

from portal_messaging.core.exceptions import UnauthorizedError
from portal_messaging.infrastructure.database.session import db_session
from portal_messaging.infrastructure.realtime.socketio_server import socketio
from portal_messaging.infrastructure.security.jwt_provider import JwtProvider
from portal_messaging.repositories.conversation_participant_repository import (
    ConversationParticipantRepository,
)
from portal_messaging.repositories.conversation_repository import ConversationRepository
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard

logger = logging.getLogger(__name__)


def _get_bearer_token(auth: dict | None) -> str | None:
    # 1) Authorization: Bearer <token>
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header.split(" ", 1)[1].strip()

    # 2) payload de auth do cliente socket.io ({token: ...})
    if isinstance(auth, dict) and auth.get("token"):
        return str(auth["token"]).strip()

    # 3) querystring ?token=...
    token = request.args.get("token")
    if token:
        return str(token).strip()

    return None


def _conversation_id(data) -> int | None:
    if not isinstance(data, dict):
        return None
    raw = data.get("conversationId", data.get("conversation_id"))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def register_socket_handlers() -> None:
    @socketio.on("connect")
    def on_connect(auth=None):
        token = _get_bearer_token(auth)
        if not token:
            return disconnect()

        try:
            claims = JwtProvider().decode(token)
        except UnauthorizedError:
            return disconnect()

        user_id = int(claims["sub"])
        request.environ["auth_user_id"] = user_id
        # room pessoal: recebe conversation:new mesmo antes de entrar na conversa
        join_room(f"user:{user_id}")

    @socketio.on("conversation:join")
    def on_join(data):
        user_id = request.environ.get("auth_user_id")
        conversation_id = _conversation_id(data)
        if user_id is None or conversation_id is None:
            return

        with db_session() as session:
            guard = ParticipantAccessGuard(
                conv_repo=ConversationRepository(session),
                part_repo=ConversationParticipantRepository(session),
                msg_repo=MessageRepository(session),
            )
            allowed = guard.can_access(user_id=int(user_id), conversation_id=conversation_id)

        if not allowed:
            logger.info("User %s denied join on conversation %s", user_id, conversation_id)
            emit("conversation:join_denied", {"conversationId": conversation_id})
            return

        join_room(f"conversation:{conversation_id}")
        emit("conversation:joined", {"conversationId": conversation_id})

    @socketio.on("conversation:leave")
    def on_leave(data):
        conversation_id = _conversation_id(data)
        if conversation_id is None:
            return
        leave_room(f"conversation:{conversation_id}")
        emit("conversation:left", {"conversationId": conversation_id})

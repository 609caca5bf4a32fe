# portal_messaging/api/routes/conversation_routes.py

from __future__ import annotations

from flask import Blueprint, jsonify, request

from portal_messaging.api.middlewares.auth_middleware import current_user_id, require_auth
from portal_messaging.api.routes._services import build_services
from portal_messaging.api.schemas.conversation_schema import (
    ConversationResponse,
    ConversationSummaryResponse,
    ListConversationsQuery,
    MarkReadRequest,
    MessagesPageResponse,
    StartConversationRequest,
    UpdateConversationSettingsRequest,
)
from portal_messaging.api.schemas.message_schema import MessagesPageQuery
from portal_messaging.infrastructure.database.session import db_session

bp_conv = Blueprint("conversations", __name__)


# -------------------------
# Rotas (consulta)
# -------------------------

@bp_conv.get("")
@require_auth
def list_conversations():
    user_id = current_user_id()
    query = ListConversationsQuery.model_validate(request.args.to_dict())

    with db_session() as session:
        summaries = build_services(session).conversations.list_user_conversations(
            user_id=user_id,
            include_archived=query.include_archived,
        )

    payload = [ConversationSummaryResponse.model_validate(s).to_json() for s in summaries]
    return jsonify(payload), 200


@bp_conv.get("/<int:conversation_id>")
@require_auth
def get_conversation(conversation_id: int):
    user_id = current_user_id()

    with db_session() as session:
        view = build_services(session).conversations.get_conversation(
            user_id=user_id,
            conversation_id=conversation_id,
        )

    return jsonify(ConversationResponse.model_validate(view).to_json()), 200


@bp_conv.get("/<int:conversation_id>/messages")
@require_auth
def get_conversation_messages(conversation_id: int):
    user_id = current_user_id()
    query = MessagesPageQuery.model_validate(request.args.to_dict())

    with db_session() as session:
        page = build_services(session).queries.get_conversation_messages(
            user_id=user_id,
            conversation_id=conversation_id,
            page=query.page,
            page_size=query.page_size,
            before_message_id=query.before,
        )

    return jsonify(MessagesPageResponse.model_validate(page).to_json()), 200


# -------------------------
# Rotas (mutação)
# -------------------------

@bp_conv.post("")
@require_auth
def start_conversation():
    user_id = current_user_id()
    body = StartConversationRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        view = build_services(session).conversations.start_conversation(
            initiator_id=user_id,
            participant_id=body.participant_id,
            initial_message=body.initial_message,
            subject=body.subject,
            project_id=body.project_id,
        )

    return jsonify(ConversationResponse.model_validate(view).to_json()), 201


@bp_conv.post("/<int:conversation_id>/mark-read")
@require_auth
def mark_conversation_as_read(conversation_id: int):
    user_id = current_user_id()
    # corpo opcional
    body = MarkReadRequest.model_validate(request.get_json(silent=True) or {})

    with db_session() as session:
        ok = build_services(session).read_cursor.mark_conversation_as_read(
            user_id=user_id,
            conversation_id=conversation_id,
            last_message_id=body.last_message_id,
        )

    return jsonify({"success": bool(ok)}), 200


@bp_conv.put("/<int:conversation_id>/settings")
@require_auth
def update_conversation_settings(conversation_id: int):
    user_id = current_user_id()
    body = UpdateConversationSettingsRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        ok = build_services(session).conversations.update_settings(
            user_id=user_id,
            conversation_id=conversation_id,
            is_muted=body.is_muted,
            is_archived=body.is_archived,
            is_pinned=body.is_pinned,
        )

    return jsonify({"success": bool(ok)}), 200

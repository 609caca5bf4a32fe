# portal_messaging/api/routes/message_routes.py

from __future__ import annotations

from flask import Blueprint, jsonify, request

from portal_messaging.api.middlewares.auth_middleware import current_user_id, require_auth
from portal_messaging.api.routes._services import build_services
from portal_messaging.api.schemas.conversation_schema import MessageStatsResponse
from portal_messaging.api.schemas.message_schema import (
    AddReactionRequest,
    EditMessageRequest,
    MessageResponse,
    ReactionGroupResponse,
    SearchMessagesQuery,
    SendMessageRequest,
)
from portal_messaging.infrastructure.database.session import db_session
from portal_messaging.services.attachment_service import AttachmentUpload

bp_msg = Blueprint("messages", __name__)


def _send_payload() -> tuple[dict, AttachmentUpload | None]:
    """multipart/form-data (com anexo opcional) ou JSON sem anexo."""
    if request.mimetype == "multipart/form-data":
        # campos vazios do form equivalem a ausentes
        data = {k: v for k, v in request.form.to_dict().items() if v != ""}
        f = request.files.get("attachment")
        if f is not None and f.filename:
            return data, AttachmentUpload(fileobj=f.stream, filename=f.filename, mime_type=f.mimetype)
        return data, None

    return request.get_json(force=True) or {}, None


# -------------------------
# Rotas (consulta)
# -------------------------

@bp_msg.get("/search")
@require_auth
def search_messages():
    user_id = current_user_id()
    query = SearchMessagesQuery.model_validate(request.args.to_dict())

    with db_session() as session:
        views = build_services(session).queries.search_messages(
            user_id=user_id,
            query=query.query,
            conversation_id=query.conversation_id,
            message_type=query.message_type,
            from_date=query.from_date,
            to_date=query.to_date,
            page=query.page,
            page_size=query.page_size,
        )

    return jsonify([MessageResponse.model_validate(v).to_json() for v in views]), 200


@bp_msg.get("/stats")
@require_auth
def get_message_stats():
    user_id = current_user_id()

    with db_session() as session:
        stats = build_services(session).queries.get_user_message_stats(user_id=user_id)

    return jsonify(MessageStatsResponse.model_validate(stats).to_json()), 200


@bp_msg.get("/<int:message_id>/reactions")
@require_auth
def get_message_reactions(message_id: int):
    user_id = current_user_id()

    with db_session() as session:
        groups = build_services(session).reactions.get_message_reactions(
            user_id=user_id,
            message_id=message_id,
        )

    return jsonify([ReactionGroupResponse.model_validate(g).to_json() for g in groups]), 200


# -------------------------
# Rotas (mutação)
# -------------------------

@bp_msg.post("")
@require_auth
def send_message():
    user_id = current_user_id()
    data, attachment = _send_payload()
    body = SendMessageRequest.model_validate(data)

    with db_session() as session:
        view = build_services(session).messages.send_message(
            sender_id=user_id,
            conversation_id=body.conversation_id,
            content=body.content,
            message_type=body.message_type,
            reply_to_message_id=body.reply_to_message_id,
            attachment=attachment,
        )

    return jsonify(MessageResponse.model_validate(view).to_json()), 201


@bp_msg.put("/<int:message_id>")
@require_auth
def edit_message(message_id: int):
    user_id = current_user_id()
    body = EditMessageRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        view = build_services(session).messages.edit_message(
            user_id=user_id,
            message_id=message_id,
            content=body.content,
        )

    return jsonify(MessageResponse.model_validate(view).to_json()), 200


@bp_msg.delete("/<int:message_id>")
@require_auth
def delete_message(message_id: int):
    user_id = current_user_id()

    with db_session() as session:
        ok = build_services(session).messages.delete_message(user_id=user_id, message_id=message_id)

    return jsonify({"success": bool(ok)}), 200


@bp_msg.post("/<int:message_id>/reactions")
@require_auth
def add_reaction(message_id: int):
    user_id = current_user_id()
    body = AddReactionRequest.model_validate(request.get_json(force=True))

    with db_session() as session:
        view = build_services(session).reactions.add_reaction(
            user_id=user_id,
            message_id=message_id,
            emoji=body.emoji,
        )

    return jsonify(MessageResponse.model_validate(view).to_json()), 200


@bp_msg.delete("/<int:message_id>/reactions/<path:emoji>")
@require_auth
def remove_reaction(message_id: int, emoji: str):
    user_id = current_user_id()

    with db_session() as session:
        view = build_services(session).reactions.remove_reaction(
            user_id=user_id,
            message_id=message_id,
            emoji=emoji,
        )

    return jsonify(MessageResponse.model_validate(view).to_json()), 200

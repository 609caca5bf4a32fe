# portal_messaging/services/message_service.py
from __future__ import annotations

import logging
from datetime import timedelta

from portal_messaging.core.clock import Clock, utcnow
from portal_messaging.core.exceptions import (
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from portal_messaging.core.interfaces.message_notifier import (
    MessageCreatedEvent,
    MessageDeletedEvent,
    MessageNotifier,
    MessageUpdatedEvent,
)
from portal_messaging.entities.message import (
    DeletedBody,
    MessageType,
    MessageView,
    infer_attachment_type,
    render_body,
)
from portal_messaging.infrastructure.database.models.message_model import MessageModel
from portal_messaging.repositories.conversation_repository import ConversationRepository
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard
from portal_messaging.services.attachment_service import (
    AttachmentService,
    AttachmentUpload,
    StoredAttachment,
)
from portal_messaging.services.message_projector import MessageProjector

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 5000
_PREVIEW_LENGTH = 120

# com anexo, esses tipos são ambíguos e cedem ao tipo inferido pelo mime
_ATTACHMENT_INFERRED_TYPES = {MessageType.TEXT, MessageType.IMAGE, MessageType.FILE}


def normalize_content(content: str | None, *, has_attachment: bool) -> str:
    text = (content or "").strip()
    if not text and not has_attachment:
        raise ValidationError.for_field("content", "Message content is required.")
    if len(text) > MAX_CONTENT_LENGTH:
        raise ValidationError.for_field(
            "content", f"Message content must be at most {MAX_CONTENT_LENGTH} characters."
        )
    return text


class MessageService:
    def __init__(
        self,
        *,
        guard: ParticipantAccessGuard,
        conv_repo: ConversationRepository,
        msg_repo: MessageRepository,
        projector: MessageProjector,
        attachments: AttachmentService,
        notifier: MessageNotifier,
        clock: Clock = utcnow,
        edit_window_minutes: int = 15,
    ) -> None:
        self._guard = guard
        self._conv_repo = conv_repo
        self._msg_repo = msg_repo
        self._projector = projector
        self._attachments = attachments
        self._notifier = notifier
        self._clock = clock
        self._edit_window = timedelta(minutes=edit_window_minutes)

    def _get_own_message(self, *, user_id: int, message_id: int) -> MessageModel:
        msg = self._msg_repo.get_by_id(message_id)
        if msg is None:
            raise NotFoundError("Message not found.")
        if msg.sender_id != user_id:
            raise ForbiddenError("Only the sender can change this message.")
        return msg

    def _preview(self, text: str) -> str:
        text = " ".join(text.split())
        if len(text) <= _PREVIEW_LENGTH:
            return text
        return text[: _PREVIEW_LENGTH - 1] + "…"

    def send_message(
        self,
        *,
        sender_id: int,
        conversation_id: int,
        content: str | None,
        message_type: MessageType = MessageType.TEXT,
        reply_to_message_id: int | None = None,
        attachment: AttachmentUpload | None = None,
    ) -> MessageView:
        conv = self._guard.ensure_conversation_access(user_id=sender_id, conversation_id=conversation_id)

        text = normalize_content(content, has_attachment=attachment is not None)

        if message_type == MessageType.SYSTEM:
            raise InvalidOperationError("System messages cannot be sent by users.")

        if reply_to_message_id is not None:
            target = self._msg_repo.get_by_id(reply_to_message_id)
            if target is None or target.conversation_id != conv.id:
                raise InvalidOperationError("Reply target does not belong to this conversation.")

        stored: StoredAttachment | None = None
        if attachment is not None:
            # bytes gravados antes da linha; se a linha falhar, o arquivo é descartado
            stored = self._attachments.store(
                fileobj=attachment.fileobj,
                filename=attachment.filename,
                mime_type=attachment.mime_type,
                conversation_id=conv.id,
            )
            if message_type in _ATTACHMENT_INFERRED_TYPES:
                message_type = infer_attachment_type(stored.mime_type)

        sent_at = self._clock()
        try:
            msg = self._msg_repo.add(
                MessageModel(
                    conversation_id=conv.id,
                    sender_id=sender_id,
                    content=text,
                    message_type=message_type.value,
                    attachment_url=stored.url if stored else None,
                    attachment_name=stored.name if stored else None,
                    attachment_mime_type=stored.mime_type if stored else None,
                    attachment_size=stored.size if stored else None,
                    sent_at=sent_at,
                    is_edited=False,
                    is_deleted=False,
                    is_system=False,
                    is_read=False,
                    reply_to_message_id=reply_to_message_id,
                )
            )
            self._conv_repo.touch_last_message(conversation_id=conv.id, sent_at=sent_at)
        except Exception:
            if stored is not None:
                self._attachments.discard(stored.url)
            logger.exception("Failed to persist message in conversation %s", conv.id)
            raise

        self._notifier.notify_message_created(
            MessageCreatedEvent(
                conversation_id=int(conv.id),
                message_id=int(msg.id),
                sender_id=int(sender_id),
                message_type=message_type.value,
                preview=self._preview(text or (stored.name if stored else "")),
                sent_at_iso=sent_at.isoformat(),
                has_attachment=stored is not None,
                reply_to_message_id=reply_to_message_id,
            )
        )
        return self._projector.project_message(msg, viewer_id=sender_id)

    def edit_message(self, *, user_id: int, message_id: int, content: str | None) -> MessageView:
        msg = self._get_own_message(user_id=user_id, message_id=message_id)

        if msg.is_deleted:
            raise InvalidOperationError("Deleted messages cannot be edited.")
        if msg.is_system:
            raise InvalidOperationError("System messages cannot be edited.")

        now = self._clock()
        if now - msg.sent_at > self._edit_window:
            raise InvalidOperationError(
                f"Messages can only be edited within {int(self._edit_window.total_seconds() // 60)} minutes of sending."
            )

        text = normalize_content(content, has_attachment=bool(msg.attachment_url))
        self._msg_repo.update_content(message_id=msg.id, content=text, edited_at=now)

        self._notifier.notify_message_updated(
            MessageUpdatedEvent(
                conversation_id=int(msg.conversation_id),
                message_id=int(msg.id),
                sender_id=int(user_id),
                content=text,
                edited_at_iso=now.isoformat(),
            )
        )
        return self._projector.project_message(msg, viewer_id=user_id)

    def delete_message(self, *, user_id: int, message_id: int) -> bool:
        msg = self._get_own_message(user_id=user_id, message_id=message_id)

        if msg.is_system:
            raise InvalidOperationError("System messages cannot be deleted.")

        # idempotente
        if msg.is_deleted:
            return True

        attachment_url = msg.attachment_url
        now = self._clock()
        self._msg_repo.soft_delete(message_id=msg.id, deleted_at=now)

        if attachment_url:
            self._attachments.discard(attachment_url)

        self._notifier.notify_message_deleted(
            MessageDeletedEvent(
                conversation_id=int(msg.conversation_id),
                message_id=int(msg.id),
                deleted_by=int(user_id),
                placeholder=render_body(DeletedBody(placeholder_kind=MessageType(msg.message_type))),
                deleted_at_iso=now.isoformat(),
            )
        )
        return True

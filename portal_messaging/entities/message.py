# portal_messaging/entities/message.py
"""
Visões de leitura de mensagens.

O corpo de uma mensagem chega aos leitores como variante etiquetada
(`ActiveBody` | `DeletedBody`): quem renderiza precisa tratar os dois casos
e o conteúdo original de uma mensagem apagada nunca sai do banco.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from portal_messaging.entities.user import UserSummary


class MessageType(str, Enum):
    TEXT = "Text"
    IMAGE = "Image"
    FILE = "File"
    SYSTEM = "System"
    PROJECT_INVITE = "ProjectInvite"
    INVOICE_SHARE = "InvoiceShare"


class MessageStatus(str, Enum):
    # SENDING e FAILED existem só no cliente (envio otimista); nunca são gravados
    SENDING = "Sending"
    SENT = "Sent"
    DELIVERED = "Delivered"
    READ = "Read"
    FAILED = "Failed"


DELETED_PLACEHOLDERS = {
    MessageType.IMAGE: "This image was deleted",
    MessageType.FILE: "This file was deleted",
}
DEFAULT_DELETED_PLACEHOLDER = "This message was deleted"


@dataclass(frozen=True)
class ActiveBody:
    content: str


@dataclass(frozen=True)
class DeletedBody:
    placeholder_kind: MessageType


MessageBody = Union[ActiveBody, DeletedBody]


def render_body(body: MessageBody) -> str:
    if isinstance(body, ActiveBody):
        return body.content
    if isinstance(body, DeletedBody):
        return DELETED_PLACEHOLDERS.get(body.placeholder_kind, DEFAULT_DELETED_PLACEHOLDER)
    raise TypeError(f"Unknown message body: {body!r}")


def infer_attachment_type(mime_type: str | None) -> MessageType:
    if mime_type and mime_type.lower().startswith("image/"):
        return MessageType.IMAGE
    return MessageType.FILE


@dataclass(frozen=True)
class AttachmentInfo:
    url: str
    name: str
    mime_type: str
    size: int

    @property
    def is_image(self) -> bool:
        return self.mime_type.lower().startswith("image/")


@dataclass(frozen=True)
class ReactionGroup:
    emoji: str
    users: list[UserSummary]
    has_current_user_reacted: bool

    @property
    def count(self) -> int:
        return len(self.users)


@dataclass(frozen=True)
class MessageView:
    id: int
    conversation_id: int
    sender_id: int
    sender: UserSummary
    body: MessageBody
    message_type: MessageType
    attachment: Optional[AttachmentInfo]
    sent_at: datetime
    edited_at: Optional[datetime]
    is_edited: bool
    is_deleted: bool
    is_system: bool
    is_read: bool
    read_at: Optional[datetime]
    reply_to_message_id: Optional[int]
    is_sent_by_current_user: bool
    # None na visão do destinatário
    status: Optional[MessageStatus]
    reply_to: Optional["MessageView"] = None
    reactions: list[ReactionGroup] = field(default_factory=list)

    @property
    def content(self) -> str:
        return render_body(self.body)

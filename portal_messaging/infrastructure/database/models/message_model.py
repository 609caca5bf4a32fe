# portal_messaging/infrastructure/database/models/message_model.py

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from portal_messaging.infrastructure.database.base_model import BaseModel, BigIntPK, UtcDateTime


class MessageModel(BaseModel):
    __tablename__ = "tbMessages"
    __table_args__ = (
        # paginação: ORDER BY sent_at DESC, id DESC dentro da conversa
        Index("ix_message_conversation_sent", "conversation_id", "sent_at", "id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    conversation_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbConversations.id"), nullable=False
    )

    sender_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False
    )

    # vazio quando só há anexo; limpo no soft delete
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Text | Image | File | System | ProjectInvite | InvoiceShare
    message_type: Mapped[str] = mapped_column(String(20), nullable=False)

    attachment_url: Mapped[str] = mapped_column(String(500), nullable=True)
    attachment_name: Mapped[str] = mapped_column(String(255), nullable=True)
    attachment_mime_type: Mapped[str] = mapped_column(String(100), nullable=True)
    attachment_size: Mapped[int] = mapped_column(BigInteger, nullable=True)

    sent_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

    edited_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=True)
    is_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    deleted_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # só vale porque a conversa tem exatamente duas partes
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=True)

    reply_to_message_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbMessages.id"), nullable=True
    )

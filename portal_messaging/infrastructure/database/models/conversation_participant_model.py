# portal_messaging/infrastructure/database/models/conversation_participant_model.py

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from portal_messaging.infrastructure.database.base_model import BaseModel, BigIntPK, UtcDateTime


class ConversationParticipantModel(BaseModel):
    """Estado por usuário (cursor de leitura + mute/archive/pin). Fonte única da verdade."""

    __tablename__ = "tbConversationParticipants"
    __table_args__ = (
        UniqueConstraint("conversation_id", "user_id", name="uq_participant_conversation_user"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    conversation_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbConversations.id"), nullable=False
    )

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False
    )

    joined_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    last_read_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=True)
    # desempate para mensagens com o mesmo sent_at do cursor
    last_read_message_id: Mapped[int] = mapped_column(BigInteger, nullable=True)
    last_seen_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=True)

    is_muted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_left: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

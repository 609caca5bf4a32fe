# portal_messaging/infrastructure/database/models/conversation_model.py

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from portal_messaging.infrastructure.database.base_model import BaseModel, BigIntPK, UtcDateTime


class ConversationModel(BaseModel):
    __tablename__ = "tbConversations"
    __table_args__ = (
        CheckConstraint("freelancer_id <> client_id", name="ck_conversation_two_parties"),
        Index("ix_conversation_pair", "freelancer_id", "client_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    # partyA / partyB: imutáveis após a criação
    freelancer_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False
    )
    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False
    )

    project_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbProjects.id"), nullable=True
    )

    subject: Mapped[str] = mapped_column(String(200), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)
    last_message_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=True)

    # conversas nunca são apagadas; mute/archive/pin ficam em tbConversationParticipants
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def party_ids(self) -> tuple[int, int]:
        return self.freelancer_id, self.client_id

    def other_party_id(self, user_id: int) -> int:
        return self.client_id if self.freelancer_id == user_id else self.freelancer_id

# portal_messaging/infrastructure/database/models/message_reaction_model.py

from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from portal_messaging.infrastructure.database.base_model import BaseModel, BigIntPK, UtcDateTime


class MessageReactionModel(BaseModel):
    __tablename__ = "tbMessageReactions"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "emoji", name="uq_reaction_message_user_emoji"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)

    message_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbMessages.id", ondelete="CASCADE"), nullable=False
    )

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tbUsers.id"), nullable=False
    )

    emoji: Mapped[str] = mapped_column(String(10), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False)

# portal_messaging/repositories/conversation_participant_repository.py
from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from portal_messaging.core.base_repository import BaseRepository
from portal_messaging.infrastructure.database.models.conversation_participant_model import (
    ConversationParticipantModel,
)
from portal_messaging.infrastructure.database.models.message_model import MessageModel


class ConversationParticipantRepository(BaseRepository[ConversationParticipantModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get(self, *, conversation_id: int, user_id: int) -> ConversationParticipantModel | None:
        stmt = select(ConversationParticipantModel).where(
            ConversationParticipantModel.conversation_id == conversation_id,
            ConversationParticipantModel.user_id == user_id,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def ensure(
        self,
        *,
        conversation_id: int,
        user_id: int,
        joined_at: datetime,
        last_read_at: datetime | None = None,
    ) -> ConversationParticipantModel:
        existing = self.get(conversation_id=conversation_id, user_id=user_id)
        if existing:
            return existing

        model = ConversationParticipantModel(
            conversation_id=conversation_id,
            user_id=user_id,
            joined_at=joined_at,
            last_read_at=last_read_at,
            is_muted=False,
            is_archived=False,
            is_pinned=False,
            has_left=False,
        )
        return self.add(model)

    def update_settings(
        self,
        *,
        conversation_id: int,
        user_id: int,
        is_muted: bool,
        is_archived: bool,
        is_pinned: bool,
    ) -> bool:
        stmt = (
            update(ConversationParticipantModel)
            .where(
                ConversationParticipantModel.conversation_id == conversation_id,
                ConversationParticipantModel.user_id == user_id,
            )
            .values(is_muted=is_muted, is_archived=is_archived, is_pinned=is_pinned)
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def set_archived(self, *, conversation_id: int, user_id: int, is_archived: bool) -> None:
        stmt = (
            update(ConversationParticipantModel)
            .where(
                ConversationParticipantModel.conversation_id == conversation_id,
                ConversationParticipantModel.user_id == user_id,
            )
            .values(is_archived=is_archived)
        )
        self._session.execute(stmt)

    def set_last_read(
        self,
        *,
        conversation_id: int,
        user_id: int,
        last_read_at: datetime,
        last_read_message_id: int | None,
        seen_at: datetime,
    ) -> None:
        stmt = (
            update(ConversationParticipantModel)
            .where(
                ConversationParticipantModel.conversation_id == conversation_id,
                ConversationParticipantModel.user_id == user_id,
            )
            .values(
                last_read_at=last_read_at,
                last_read_message_id=last_read_message_id,
                last_seen_at=seen_at,
            )
        )
        self._session.execute(stmt)

    def set_last_seen(self, *, conversation_id: int, user_id: int, seen_at: datetime) -> None:
        stmt = (
            update(ConversationParticipantModel)
            .where(
                ConversationParticipantModel.conversation_id == conversation_id,
                ConversationParticipantModel.user_id == user_id,
            )
            .values(last_seen_at=seen_at)
        )
        self._session.execute(stmt)

    def _unread_filter(self, user_id: int):
        return and_(
            ConversationParticipantModel.user_id == user_id,
            # não contar mensagens do próprio usuário
            MessageModel.sender_id != user_id,
            # mensagens depois do cursor (tudo, se nunca leu); apagadas continuam contando
            or_(
                ConversationParticipantModel.last_read_at.is_(None),
                MessageModel.sent_at > ConversationParticipantModel.last_read_at,
                and_(
                    MessageModel.sent_at == ConversationParticipantModel.last_read_at,
                    MessageModel.id > func.coalesce(ConversationParticipantModel.last_read_message_id, 0),
                ),
            ),
        )

    def get_unread_count(self, *, conversation_id: int, user_id: int) -> int:
        stmt = (
            select(func.count(MessageModel.id))
            .join(
                ConversationParticipantModel,
                ConversationParticipantModel.conversation_id == MessageModel.conversation_id,
            )
            .where(
                MessageModel.conversation_id == conversation_id,
                self._unread_filter(user_id),
            )
        )
        return int(self._session.execute(stmt).scalar_one())

    def get_unread_count_by_conversation(self, *, user_id: int) -> dict[int, int]:
        """
        Retorna um dict:
        {
            conversation_id: unread_count
        }
        (só conversas com pelo menos uma não lida)
        """
        stmt = (
            select(
                MessageModel.conversation_id,
                func.count(MessageModel.id).label("unread_count"),
            )
            .join(
                ConversationParticipantModel,
                ConversationParticipantModel.conversation_id == MessageModel.conversation_id,
            )
            .where(
                self._unread_filter(user_id),
                ConversationParticipantModel.has_left.is_(False),
            )
            .group_by(MessageModel.conversation_id)
        )
        rows = self._session.execute(stmt).all()
        return {row.conversation_id: row.unread_count for row in rows}

    def list_by_conversation_ids(
        self, conversation_ids: list[int]
    ) -> dict[tuple[int, int], ConversationParticipantModel]:
        """{(conversation_id, user_id): participante}"""
        ids = {int(x) for x in conversation_ids if x is not None}
        if not ids:
            return {}
        stmt = select(ConversationParticipantModel).where(
            ConversationParticipantModel.conversation_id.in_(ids)
        )
        return {
            (p.conversation_id, p.user_id): p
            for p in self._session.execute(stmt).scalars().all()
        }

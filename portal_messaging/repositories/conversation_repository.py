# portal_messaging/repositories/conversation_repository.py
from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from portal_messaging.core.base_repository import BaseRepository
from portal_messaging.infrastructure.database.models.conversation_model import ConversationModel
from portal_messaging.infrastructure.database.models.conversation_participant_model import (
    ConversationParticipantModel,
)


class ConversationRepository(BaseRepository[ConversationModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def _last_activity(self):
        # COALESCE(last_message_at, created_at)
        return func.coalesce(ConversationModel.last_message_at, ConversationModel.created_at)

    def _involves(self, user_id: int):
        return or_(
            ConversationModel.freelancer_id == user_id,
            ConversationModel.client_id == user_id,
        )

    def get_by_id(self, conversation_id: int) -> ConversationModel | None:
        stmt = select(ConversationModel).where(ConversationModel.id == conversation_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def find_active_between(
        self, *, user_a: int, user_b: int, project_id: int | None
    ) -> ConversationModel | None:
        pair = or_(
            and_(ConversationModel.freelancer_id == user_a, ConversationModel.client_id == user_b),
            and_(ConversationModel.freelancer_id == user_b, ConversationModel.client_id == user_a),
        )
        stmt = select(ConversationModel).where(pair, ConversationModel.is_active.is_(True))

        # sem projeto: qualquer conversa do par serve
        if project_id is not None:
            stmt = stmt.where(ConversationModel.project_id == project_id)

        stmt = stmt.order_by(self._last_activity().desc(), ConversationModel.id.desc())
        return self._session.execute(stmt).scalars().first()

    def list_rows_for_user(
        self, *, user_id: int, include_archived: bool
    ) -> list[tuple[ConversationModel, ConversationParticipantModel]]:
        stmt = (
            select(ConversationModel, ConversationParticipantModel)
            .join(
                ConversationParticipantModel,
                and_(
                    ConversationParticipantModel.conversation_id == ConversationModel.id,
                    ConversationParticipantModel.user_id == user_id,
                ),
            )
            .where(
                self._involves(user_id),
                ConversationParticipantModel.has_left.is_(False),
            )
        )
        if not include_archived:
            stmt = stmt.where(ConversationParticipantModel.is_archived.is_(False))

        # fixadas primeiro, depois atividade mais recente
        stmt = stmt.order_by(
            ConversationParticipantModel.is_pinned.desc(),
            self._last_activity().desc(),
            ConversationModel.id.desc(),
        )
        return [(conv, part) for conv, part in self._session.execute(stmt).all()]

    def touch_last_message(self, *, conversation_id: int, sent_at: datetime) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(last_message_at=sent_at, updated_at=sent_at)
        )
        self._session.execute(stmt)

    def get_many(self, conversation_ids: list[int]) -> dict[int, ConversationModel]:
        ids = {int(x) for x in conversation_ids if x is not None}
        if not ids:
            return {}
        stmt = select(ConversationModel).where(ConversationModel.id.in_(ids))
        return {c.id: c for c in self._session.execute(stmt).scalars().all()}

# portal_messaging/repositories/message_reaction_repository.py
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal_messaging.core.base_repository import BaseRepository
from portal_messaging.infrastructure.database.models.message_reaction_model import MessageReactionModel
from portal_messaging.infrastructure.database.models.user_model import UserModel


class MessageReactionRepository(BaseRepository[MessageReactionModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get(self, *, message_id: int, user_id: int, emoji: str) -> MessageReactionModel | None:
        stmt = select(MessageReactionModel).where(
            MessageReactionModel.message_id == message_id,
            MessageReactionModel.user_id == user_id,
            MessageReactionModel.emoji == emoji,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def add_if_absent(self, *, message_id: int, user_id: int, emoji: str, created_at: datetime) -> bool:
        """True se inseriu; False se a tripla já existia (inclusive por corrida concorrente)."""
        if self.get(message_id=message_id, user_id=user_id, emoji=emoji) is not None:
            return False

        savepoint = self._session.begin_nested()
        try:
            self._session.add(
                MessageReactionModel(
                    message_id=message_id,
                    user_id=user_id,
                    emoji=emoji,
                    created_at=created_at,
                )
            )
            self._session.flush()
        except IntegrityError:
            # outra requisição inseriu a mesma tripla: vira no-op
            savepoint.rollback()
            return False

        savepoint.commit()
        return True

    def remove(self, *, message_id: int, user_id: int, emoji: str) -> bool:
        stmt = delete(MessageReactionModel).where(
            MessageReactionModel.message_id == message_id,
            MessageReactionModel.user_id == user_id,
            MessageReactionModel.emoji == emoji,
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def list_rows_by_message_ids(
        self, message_ids: list[int]
    ) -> dict[int, list[tuple[MessageReactionModel, UserModel]]]:
        if not message_ids:
            return {}

        stmt = (
            select(MessageReactionModel, UserModel)
            .join(UserModel, UserModel.id == MessageReactionModel.user_id)
            .where(MessageReactionModel.message_id.in_(message_ids))
            .order_by(MessageReactionModel.created_at.asc(), MessageReactionModel.id.asc())
        )

        grouped: dict[int, list[tuple[MessageReactionModel, UserModel]]] = {}
        for reaction, user in self._session.execute(stmt).all():
            grouped.setdefault(reaction.message_id, []).append((reaction, user))
        return grouped

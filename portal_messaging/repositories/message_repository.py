# portal_messaging/repositories/message_repository.py
from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from portal_messaging.core.base_repository import BaseRepository
from portal_messaging.infrastructure.database.models.conversation_model import ConversationModel
from portal_messaging.infrastructure.database.models.conversation_participant_model import (
    ConversationParticipantModel,
)
from portal_messaging.infrastructure.database.models.message_model import MessageModel


class MessageRepository(BaseRepository[MessageModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def _newest_first(self):
        # desempate por id: ordem total mesmo com sent_at repetido
        return (MessageModel.sent_at.desc(), MessageModel.id.desc())

    def _older_than(self, *, sent_at: datetime, message_id: int):
        return or_(
            MessageModel.sent_at < sent_at,
            and_(MessageModel.sent_at == sent_at, MessageModel.id < message_id),
        )

    def _newer_than(self, *, sent_at: datetime, message_id: int):
        return or_(
            MessageModel.sent_at > sent_at,
            and_(MessageModel.sent_at == sent_at, MessageModel.id > message_id),
        )

    def get_by_id(self, message_id: int) -> MessageModel | None:
        stmt = select(MessageModel).where(MessageModel.id == message_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def get_many(self, message_ids: list[int]) -> dict[int, MessageModel]:
        ids = {int(x) for x in message_ids if x is not None}
        if not ids:
            return {}
        stmt = select(MessageModel).where(MessageModel.id.in_(ids))
        return {m.id: m for m in self._session.execute(stmt).scalars().all()}

    def count_by_conversation(self, conversation_id: int) -> int:
        stmt = select(func.count(MessageModel.id)).where(MessageModel.conversation_id == conversation_id)
        return int(self._session.execute(stmt).scalar_one())

    def list_page(self, *, conversation_id: int, limit: int, offset: int) -> list[MessageModel]:
        """Janela newest-first; o chamador inverte para exibição."""
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(*self._newest_first())
            .limit(limit)
            .offset(offset)
        )
        return list(self._session.execute(stmt).scalars().all())

    def list_before(self, *, conversation_id: int, cursor: MessageModel, limit: int) -> list[MessageModel]:
        stmt = (
            select(MessageModel)
            .where(
                MessageModel.conversation_id == conversation_id,
                self._older_than(sent_at=cursor.sent_at, message_id=cursor.id),
            )
            .order_by(*self._newest_first())
            .limit(limit)
        )
        return list(self._session.execute(stmt).scalars().all())

    def exists_older(self, *, conversation_id: int, oldest: MessageModel) -> bool:
        stmt = (
            select(MessageModel.id)
            .where(
                MessageModel.conversation_id == conversation_id,
                self._older_than(sent_at=oldest.sent_at, message_id=oldest.id),
            )
            .limit(1)
        )
        return self._session.execute(stmt).first() is not None

    def exists_newer(self, *, conversation_id: int, newest: MessageModel) -> bool:
        stmt = (
            select(MessageModel.id)
            .where(
                MessageModel.conversation_id == conversation_id,
                self._newer_than(sent_at=newest.sent_at, message_id=newest.id),
            )
            .limit(1)
        )
        return self._session.execute(stmt).first() is not None

    def get_latest(self, conversation_id: int) -> MessageModel | None:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(*self._newest_first())
            .limit(1)
        )
        return self._session.execute(stmt).scalars().first()

    def get_latest_by_conversation_ids(self, conversation_ids: list[int]) -> dict[int, MessageModel]:
        if not conversation_ids:
            return {}

        ranked = (
            select(
                MessageModel.id,
                func.row_number()
                .over(
                    partition_by=MessageModel.conversation_id,
                    order_by=self._newest_first(),
                )
                .label("rn"),
            )
            .where(MessageModel.conversation_id.in_(conversation_ids))
            .subquery()
        )
        stmt = (
            select(MessageModel)
            .join(ranked, ranked.c.id == MessageModel.id)
            .where(ranked.c.rn == 1)
        )
        return {m.conversation_id: m for m in self._session.execute(stmt).scalars().all()}

    def latest_id_up_to(self, *, conversation_id: int, sent_at: datetime) -> int | None:
        stmt = select(func.max(MessageModel.id)).where(
            MessageModel.conversation_id == conversation_id,
            MessageModel.sent_at <= sent_at,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def mark_read_up_to(
        self,
        *,
        conversation_id: int,
        reader_id: int,
        cursor: datetime,
        cursor_message_id: int | None,
        read_at: datetime,
    ) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.conversation_id == conversation_id,
                MessageModel.sender_id != reader_id,
                MessageModel.is_read.is_(False),
                or_(
                    MessageModel.sent_at < cursor,
                    and_(MessageModel.sent_at == cursor, MessageModel.id <= (cursor_message_id or 0)),
                ),
            )
            .values(is_read=True, read_at=read_at)
        )
        res = self._session.execute(stmt)
        return int(res.rowcount or 0)

    def find_by_attachment_url(self, url: str) -> MessageModel | None:
        stmt = select(MessageModel).where(
            MessageModel.attachment_url == url,
            MessageModel.is_deleted.is_(False),
        )
        return self._session.execute(stmt).scalars().first()

    def search(
        self,
        *,
        user_id: int,
        query: str | None,
        conversation_id: int | None,
        message_type: str | None,
        from_date: datetime | None,
        to_date: datetime | None,
        limit: int,
        offset: int,
    ) -> list[MessageModel]:
        stmt = (
            select(MessageModel)
            .join(ConversationModel, ConversationModel.id == MessageModel.conversation_id)
            .outerjoin(
                ConversationParticipantModel,
                and_(
                    ConversationParticipantModel.conversation_id == ConversationModel.id,
                    ConversationParticipantModel.user_id == user_id,
                ),
            )
            .where(
                or_(
                    ConversationModel.freelancer_id == user_id,
                    ConversationModel.client_id == user_id,
                ),
                # sem linha de participante conta como "não saiu", igual ao guard
                ConversationParticipantModel.has_left.is_not(True),
                # apagadas nunca aparecem na busca
                MessageModel.is_deleted.is_(False),
            )
        )

        if query:
            stmt = stmt.where(func.lower(MessageModel.content).contains(query.lower(), autoescape=True))
        if conversation_id is not None:
            stmt = stmt.where(MessageModel.conversation_id == conversation_id)
        if message_type is not None:
            stmt = stmt.where(MessageModel.message_type == message_type)
        if from_date is not None:
            stmt = stmt.where(MessageModel.sent_at >= from_date)
        if to_date is not None:
            stmt = stmt.where(MessageModel.sent_at <= to_date)

        stmt = stmt.order_by(*self._newest_first()).limit(limit).offset(offset)
        return list(self._session.execute(stmt).scalars().all())

    def stats_for_conversations(self, conversation_ids: list[int]) -> tuple[int, datetime | None]:
        """(total de mensagens, sent_at mais recente)"""
        if not conversation_ids:
            return 0, None
        stmt = select(func.count(MessageModel.id), func.max(MessageModel.sent_at)).where(
            MessageModel.conversation_id.in_(conversation_ids)
        )
        total, last = self._session.execute(stmt).one()
        return int(total or 0), last

    def update_content(self, *, message_id: int, content: str, edited_at: datetime) -> bool:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id, MessageModel.is_deleted.is_(False))
            .values(content=content, is_edited=True, edited_at=edited_at)
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def soft_delete(self, *, message_id: int, deleted_at: datetime) -> bool:
        # a linha fica (ordem e respostas estáveis); conteúdo e anexo somem
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id, MessageModel.is_deleted.is_(False))
            .values(
                content="",
                attachment_url=None,
                attachment_name=None,
                attachment_mime_type=None,
                attachment_size=None,
                is_deleted=True,
                deleted_at=deleted_at,
            )
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

# portal_messaging/services/access_guard.py
from __future__ import annotations

from portal_messaging.core.exceptions import ForbiddenError, NotFoundError
from portal_messaging.infrastructure.database.models.conversation_model import ConversationModel
from portal_messaging.infrastructure.database.models.message_model import MessageModel
from portal_messaging.repositories.conversation_participant_repository import (
    ConversationParticipantRepository,
)
from portal_messaging.repositories.conversation_repository import ConversationRepository
from portal_messaging.repositories.message_repository import MessageRepository


class ParticipantAccessGuard:
    """
    Só as duas partes da conversa leem/escrevem nela.
    Quem saiu (has_left) perde o acesso mesmo continuando como parte.
    """

    def __init__(
        self,
        *,
        conv_repo: ConversationRepository,
        part_repo: ConversationParticipantRepository,
        msg_repo: MessageRepository,
    ) -> None:
        self._conv_repo = conv_repo
        self._part_repo = part_repo
        self._msg_repo = msg_repo

    def _is_participant(self, conv: ConversationModel, user_id: int) -> bool:
        if user_id not in conv.party_ids():
            return False
        participant = self._part_repo.get(conversation_id=conv.id, user_id=user_id)
        return participant is None or not participant.has_left

    def can_access(self, *, user_id: int, conversation_id: int) -> bool:
        conv = self._conv_repo.get_by_id(conversation_id)
        if conv is None:
            return False
        return self._is_participant(conv, user_id)

    def ensure_conversation_access(self, *, user_id: int, conversation_id: int) -> ConversationModel:
        conv = self._conv_repo.get_by_id(conversation_id)
        if conv is None:
            raise NotFoundError("Conversation not found.")
        if not self._is_participant(conv, user_id):
            raise ForbiddenError("You are not a participant of this conversation.")
        return conv

    def ensure_message_access(self, *, user_id: int, message_id: int) -> tuple[MessageModel, ConversationModel]:
        msg = self._msg_repo.get_by_id(message_id)
        if msg is None:
            raise NotFoundError("Message not found.")
        conv = self.ensure_conversation_access(user_id=user_id, conversation_id=msg.conversation_id)
        return msg, conv

# portal_messaging/services/read_cursor_service.py
from __future__ import annotations

import logging

from portal_messaging.core.clock import Clock, utcnow
from portal_messaging.core.exceptions import NotFoundError
from portal_messaging.core.interfaces.conversation_notifier import (
    ConversationNotifier,
    ConversationReadEvent,
)
from portal_messaging.repositories.conversation_participant_repository import (
    ConversationParticipantRepository,
)
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard

logger = logging.getLogger(__name__)


class ReadCursorService:
    def __init__(
        self,
        *,
        guard: ParticipantAccessGuard,
        part_repo: ConversationParticipantRepository,
        msg_repo: MessageRepository,
        notifier: ConversationNotifier,
        clock: Clock = utcnow,
    ) -> None:
        self._guard = guard
        self._part_repo = part_repo
        self._msg_repo = msg_repo
        self._notifier = notifier
        self._clock = clock

    def mark_conversation_as_read(
        self, *, user_id: int, conversation_id: int, last_message_id: int | None = None
    ) -> bool:
        conv = self._guard.ensure_conversation_access(user_id=user_id, conversation_id=conversation_id)
        now = self._clock()

        if last_message_id is not None:
            msg = self._msg_repo.get_by_id(last_message_id)
            if msg is None or msg.conversation_id != conv.id:
                raise NotFoundError("Message not found in this conversation.")
            cursor, cursor_message_id = msg.sent_at, msg.id
        else:
            # (sent_at, id): mensagem gravada no mesmo instante depois daqui continua não lida
            cursor = now
            cursor_message_id = self._msg_repo.latest_id_up_to(conversation_id=conv.id, sent_at=now)

        participant = self._part_repo.ensure(conversation_id=conv.id, user_id=user_id, joined_at=now)

        # o cursor nunca volta
        if participant.last_read_at is not None and (
            (participant.last_read_at, participant.last_read_message_id or 0) > (cursor, cursor_message_id or 0)
        ):
            cursor, cursor_message_id = participant.last_read_at, participant.last_read_message_id

        self._part_repo.set_last_read(
            conversation_id=conv.id,
            user_id=user_id,
            last_read_at=cursor,
            last_read_message_id=cursor_message_id,
            seen_at=now,
        )
        flagged = self._msg_repo.mark_read_up_to(
            conversation_id=conv.id,
            reader_id=user_id,
            cursor=cursor,
            cursor_message_id=cursor_message_id,
            read_at=now,
        )
        logger.debug("Conversation %s read by user %s (%s messages flagged)", conv.id, user_id, flagged)

        self._notifier.notify_conversation_read(
            ConversationReadEvent(
                conversation_id=int(conv.id),
                user_id=int(user_id),
                last_read_at_iso=cursor.isoformat(),
            )
        )
        return True

    def unread_count(self, *, user_id: int, conversation_id: int) -> int:
        self._guard.ensure_conversation_access(user_id=user_id, conversation_id=conversation_id)
        return self._part_repo.get_unread_count(conversation_id=conversation_id, user_id=user_id)

    def unread_counts_for_user(self, *, user_id: int) -> dict[int, int]:
        return self._part_repo.get_unread_count_by_conversation(user_id=user_id)

    def touch_last_seen(self, *, user_id: int, conversation_id: int) -> None:
        self._part_repo.set_last_seen(conversation_id=conversation_id, user_id=user_id, seen_at=self._clock())

# portal_messaging/services/message_query_service.py
from __future__ import annotations

from datetime import datetime

from portal_messaging.core.exceptions import NotFoundError, ValidationError
from portal_messaging.entities.conversation import MessageStats, MessagesPage
from portal_messaging.entities.message import MessageType, MessageView
from portal_messaging.repositories.conversation_repository import ConversationRepository
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard
from portal_messaging.services.message_projector import MessageProjector
from portal_messaging.services.read_cursor_service import ReadCursorService

_RECENT_CONVERSATIONS = 5


def _check_window(*, page: int, page_size: int, max_page_size: int) -> None:
    if page < 1:
        raise ValidationError.for_field("page", "page must be >= 1.")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError.for_field("pageSize", f"pageSize must be between 1 and {max_page_size}.")


class MessageQueryService:
    """Leituras: janela de mensagens de uma conversa, busca e estatísticas do usuário."""

    def __init__(
        self,
        *,
        guard: ParticipantAccessGuard,
        conv_repo: ConversationRepository,
        msg_repo: MessageRepository,
        projector: MessageProjector,
        read_cursor: ReadCursorService,
        max_page_size: int = 100,
    ) -> None:
        self._guard = guard
        self._conv_repo = conv_repo
        self._msg_repo = msg_repo
        self._projector = projector
        self._read_cursor = read_cursor
        self._max_page_size = max_page_size

    def get_conversation_messages(
        self,
        *,
        user_id: int,
        conversation_id: int,
        page: int = 1,
        page_size: int = 50,
        before_message_id: int | None = None,
    ) -> MessagesPage:
        conv = self._guard.ensure_conversation_access(user_id=user_id, conversation_id=conversation_id)
        _check_window(page=page, page_size=page_size, max_page_size=self._max_page_size)

        if before_message_id is not None:
            cursor = self._msg_repo.get_by_id(before_message_id)
            if cursor is None or cursor.conversation_id != conv.id:
                raise NotFoundError("Cursor message not found in this conversation.")
            window = self._msg_repo.list_before(conversation_id=conv.id, cursor=cursor, limit=page_size)
        else:
            window = self._msg_repo.list_page(
                conversation_id=conv.id, limit=page_size, offset=(page - 1) * page_size
            )

        # window vem newest-first
        if window:
            has_next = self._msg_repo.exists_older(conversation_id=conv.id, oldest=window[-1])
        else:
            has_next = False

        if before_message_id is not None:
            newest = window[0] if window else cursor
            has_previous = self._msg_repo.exists_newer(conversation_id=conv.id, newest=newest)
        else:
            has_previous = page > 1

        # só o fetch "do topo" (página 1, sem cursor) marca como lido
        if page == 1 and before_message_id is None:
            self._read_cursor.mark_conversation_as_read(user_id=user_id, conversation_id=conv.id)
        else:
            self._read_cursor.touch_last_seen(user_id=user_id, conversation_id=conv.id)

        messages = self._projector.project_messages(list(reversed(window)), viewer_id=user_id)

        return MessagesPage(
            messages=messages,
            total_count=self._msg_repo.count_by_conversation(conv.id),
            page=page,
            page_size=page_size,
            has_next_page=has_next,
            has_previous_page=has_previous,
            conversation=self._projector.conversation_view(conv, viewer_id=user_id),
        )

    def search_messages(
        self,
        *,
        user_id: int,
        query: str | None = None,
        conversation_id: int | None = None,
        message_type: MessageType | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> list[MessageView]:
        _check_window(page=page, page_size=page_size, max_page_size=self._max_page_size)

        if conversation_id is not None:
            self._guard.ensure_conversation_access(user_id=user_id, conversation_id=conversation_id)

        text = (query or "").strip() or None
        rows = self._msg_repo.search(
            user_id=user_id,
            query=text,
            conversation_id=conversation_id,
            message_type=message_type.value if message_type is not None else None,
            from_date=from_date,
            to_date=to_date,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return self._projector.project_messages(rows, viewer_id=user_id)

    def get_user_message_stats(self, *, user_id: int) -> MessageStats:
        rows = self._conv_repo.list_rows_for_user(user_id=user_id, include_archived=True)
        conv_ids = [conv.id for conv, _ in rows]

        unread = self._read_cursor.unread_counts_for_user(user_id=user_id)
        total_messages, last_sent_at = self._msg_repo.stats_for_conversations(conv_ids)

        active_rows = [(conv, part) for conv, part in rows if not part.is_archived]
        recent = sorted(
            active_rows,
            key=lambda r: (r[0].last_message_at or r[0].created_at, r[0].id),
            reverse=True,
        )[:_RECENT_CONVERSATIONS]

        return MessageStats(
            total_conversations=len(rows),
            active_conversations=len(active_rows),
            unread_conversations=sum(1 for cid in conv_ids if unread.get(cid, 0) > 0),
            total_messages=total_messages,
            unread_messages=sum(unread.get(cid, 0) for cid in conv_ids),
            last_activity=last_sent_at,
            recent_conversations=self._projector.conversation_summaries(recent, viewer_id=user_id),
        )

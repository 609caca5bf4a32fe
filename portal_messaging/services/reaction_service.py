# portal_messaging/services/reaction_service.py
from __future__ import annotations

from portal_messaging.core.clock import Clock, utcnow
from portal_messaging.core.exceptions import InvalidOperationError, ValidationError
from portal_messaging.core.interfaces.message_notifier import (
    MessageNotifier,
    MessageReactionsChangedEvent,
)
from portal_messaging.entities.message import MessageView, ReactionGroup
from portal_messaging.repositories.message_reaction_repository import MessageReactionRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard
from portal_messaging.services.message_projector import MessageProjector

MAX_EMOJI_LENGTH = 10


def normalize_emoji(emoji: str | None) -> str:
    value = (emoji or "").strip()
    if not value or len(value) > MAX_EMOJI_LENGTH or any(ch.isspace() for ch in value):
        raise ValidationError.for_field(
            "emoji", f"Emoji must be 1 to {MAX_EMOJI_LENGTH} characters without spaces."
        )
    return value


class ReactionService:
    def __init__(
        self,
        *,
        guard: ParticipantAccessGuard,
        reaction_repo: MessageReactionRepository,
        projector: MessageProjector,
        notifier: MessageNotifier,
        clock: Clock = utcnow,
    ) -> None:
        self._guard = guard
        self._reaction_repo = reaction_repo
        self._projector = projector
        self._notifier = notifier
        self._clock = clock

    def _notify(self, *, conversation_id: int, message_id: int, user_id: int, groups: list[ReactionGroup]) -> None:
        self._notifier.notify_reactions_changed(
            MessageReactionsChangedEvent(
                conversation_id=int(conversation_id),
                message_id=int(message_id),
                changed_by=int(user_id),
                reactions=[
                    {"emoji": g.emoji, "count": g.count, "userIds": [u.id for u in g.users]}
                    for g in groups
                ],
            )
        )

    def add_reaction(self, *, user_id: int, message_id: int, emoji: str | None) -> MessageView:
        value = normalize_emoji(emoji)
        msg, conv = self._guard.ensure_message_access(user_id=user_id, message_id=message_id)

        if msg.is_deleted:
            raise InvalidOperationError("Cannot react to a deleted message.")

        inserted = self._reaction_repo.add_if_absent(
            message_id=msg.id,
            user_id=user_id,
            emoji=value,
            created_at=self._clock(),
        )

        view = self._projector.project_message(msg, viewer_id=user_id)
        if inserted:
            self._notify(conversation_id=conv.id, message_id=msg.id, user_id=user_id, groups=view.reactions)
        return view

    def remove_reaction(self, *, user_id: int, message_id: int, emoji: str | None) -> MessageView:
        value = normalize_emoji(emoji)
        msg, conv = self._guard.ensure_message_access(user_id=user_id, message_id=message_id)

        removed = self._reaction_repo.remove(message_id=msg.id, user_id=user_id, emoji=value)

        view = self._projector.project_message(msg, viewer_id=user_id)
        if removed:
            self._notify(conversation_id=conv.id, message_id=msg.id, user_id=user_id, groups=view.reactions)
        return view

    def get_message_reactions(self, *, user_id: int, message_id: int) -> list[ReactionGroup]:
        msg, _conv = self._guard.ensure_message_access(user_id=user_id, message_id=message_id)
        return self._projector.reactions_of(msg.id, viewer_id=user_id)

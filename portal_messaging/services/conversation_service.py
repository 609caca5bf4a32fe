# portal_messaging/services/conversation_service.py
from __future__ import annotations

import logging

from portal_messaging.core.clock import Clock, utcnow
from portal_messaging.core.exceptions import InvalidOperationError, NotFoundError, ValidationError
from portal_messaging.core.interfaces.conversation_notifier import (
    ConversationCreatedEvent,
    ConversationNotifier,
)
from portal_messaging.entities.conversation import ConversationSummary, ConversationView
from portal_messaging.infrastructure.database.models.conversation_model import ConversationModel
from portal_messaging.infrastructure.database.models.user_model import UserModel
from portal_messaging.repositories.conversation_participant_repository import (
    ConversationParticipantRepository,
)
from portal_messaging.repositories.conversation_repository import ConversationRepository
from portal_messaging.repositories.project_repository import ProjectRepository
from portal_messaging.repositories.user_repository import UserRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard
from portal_messaging.services.message_projector import MessageProjector
from portal_messaging.services.message_service import MessageService, normalize_content

logger = logging.getLogger(__name__)

MAX_SUBJECT_LENGTH = 200

FREELANCER_ROLE = "freelancer"
CLIENT_ROLE = "client"


def assign_parties(initiator: UserModel, other: UserModel) -> tuple[int, int]:
    """(freelancer_id, client_id) a partir dos papéis; sem papel decisivo, o menor id é o freelancer."""
    initiator_role = (initiator.role or "").lower()
    other_role = (other.role or "").lower()

    if initiator_role == FREELANCER_ROLE:
        return initiator.id, other.id
    if initiator_role == CLIENT_ROLE:
        return other.id, initiator.id
    if other_role == FREELANCER_ROLE:
        return other.id, initiator.id
    if other_role == CLIENT_ROLE:
        return initiator.id, other.id

    low, high = sorted((initiator.id, other.id))
    return low, high


class ConversationService:
    def __init__(
        self,
        *,
        guard: ParticipantAccessGuard,
        conv_repo: ConversationRepository,
        part_repo: ConversationParticipantRepository,
        user_repo: UserRepository,
        project_repo: ProjectRepository,
        projector: MessageProjector,
        messages: MessageService,
        notifier: ConversationNotifier,
        clock: Clock = utcnow,
    ) -> None:
        self._guard = guard
        self._conv_repo = conv_repo
        self._part_repo = part_repo
        self._user_repo = user_repo
        self._project_repo = project_repo
        self._projector = projector
        self._messages = messages
        self._notifier = notifier
        self._clock = clock

    def _normalize_subject(self, subject: str | None) -> str | None:
        if subject is None:
            return None
        value = subject.strip()
        if len(value) > MAX_SUBJECT_LENGTH:
            raise ValidationError.for_field("subject", f"Subject must be at most {MAX_SUBJECT_LENGTH} characters.")
        return value or None

    def start_conversation(
        self,
        *,
        initiator_id: int,
        participant_id: int,
        initial_message: str | None,
        subject: str | None = None,
        project_id: int | None = None,
    ) -> ConversationView:
        if participant_id == initiator_id:
            raise InvalidOperationError("You cannot start a conversation with yourself.")

        normalize_content(initial_message, has_attachment=False)
        subject_value = self._normalize_subject(subject)

        initiator = self._user_repo.get_by_id(initiator_id)
        if initiator is None:
            raise NotFoundError("User not found.")
        other = self._user_repo.get_by_id(participant_id)
        if other is None:
            raise NotFoundError("Participant not found.")
        if project_id is not None and self._project_repo.get_by_id(project_id) is None:
            raise NotFoundError("Project not found.")

        conv = self._conv_repo.find_active_between(
            user_a=initiator_id, user_b=participant_id, project_id=project_id
        )

        if conv is not None:
            # quem reabriu a conversa não a quer mais arquivada
            self._part_repo.set_archived(conversation_id=conv.id, user_id=initiator_id, is_archived=False)
            logger.info("Reusing conversation %s for users %s/%s", conv.id, initiator_id, participant_id)
        else:
            conv = self._create(
                initiator_id=initiator_id,
                initiator=initiator,
                other=other,
                subject=subject_value,
                project_id=project_id,
            )

        self._messages.send_message(
            sender_id=initiator_id,
            conversation_id=conv.id,
            content=initial_message,
        )
        return self._projector.conversation_view(conv, viewer_id=initiator_id)

    def _create(
        self,
        *,
        initiator_id: int,
        initiator: UserModel,
        other: UserModel,
        subject: str | None,
        project_id: int | None,
    ) -> ConversationModel:
        freelancer_id, client_id = assign_parties(initiator, other)
        now = self._clock()

        conv = self._conv_repo.add(
            ConversationModel(
                freelancer_id=freelancer_id,
                client_id=client_id,
                project_id=project_id,
                subject=subject,
                created_at=now,
                updated_at=now,
                last_message_at=None,
                is_active=True,
            )
        )

        # o iniciador já "leu" tudo até a criação; a outra parte ainda não leu nada
        self._part_repo.ensure(
            conversation_id=conv.id, user_id=initiator_id, joined_at=now, last_read_at=now
        )
        self._part_repo.ensure(conversation_id=conv.id, user_id=other.id, joined_at=now)

        logger.info(
            "Conversation %s created (freelancer=%s, client=%s, project=%s)",
            conv.id,
            freelancer_id,
            client_id,
            project_id,
        )

        self._notifier.notify_conversation_created(
            ConversationCreatedEvent(
                conversation_id=int(conv.id),
                freelancer_id=int(freelancer_id),
                client_id=int(client_id),
                project_id=project_id,
                subject=subject,
                created_by=int(initiator_id),
                created_at_iso=now.isoformat(),
            )
        )
        return conv

    def get_conversation(self, *, user_id: int, conversation_id: int) -> ConversationView:
        conv = self._guard.ensure_conversation_access(user_id=user_id, conversation_id=conversation_id)
        return self._projector.conversation_view(conv, viewer_id=user_id)

    def update_settings(
        self,
        *,
        user_id: int,
        conversation_id: int,
        is_muted: bool | None = None,
        is_archived: bool | None = None,
        is_pinned: bool | None = None,
    ) -> bool:
        conv = self._guard.ensure_conversation_access(user_id=user_id, conversation_id=conversation_id)
        participant = self._part_repo.ensure(conversation_id=conv.id, user_id=user_id, joined_at=self._clock())

        # campo omitido mantém o valor atual
        return self._part_repo.update_settings(
            conversation_id=conv.id,
            user_id=user_id,
            is_muted=participant.is_muted if is_muted is None else bool(is_muted),
            is_archived=participant.is_archived if is_archived is None else bool(is_archived),
            is_pinned=participant.is_pinned if is_pinned is None else bool(is_pinned),
        )

    def list_user_conversations(self, *, user_id: int, include_archived: bool = False) -> list[ConversationSummary]:
        rows = self._conv_repo.list_rows_for_user(user_id=user_id, include_archived=include_archived)
        return self._projector.conversation_summaries(rows, viewer_id=user_id)

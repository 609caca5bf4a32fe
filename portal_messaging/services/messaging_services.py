# portal_messaging/services/messaging_services.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from portal_messaging.config.settings import settings
from portal_messaging.core.clock import Clock, utcnow
from portal_messaging.core.interfaces.conversation_notifier import ConversationNotifier
from portal_messaging.core.interfaces.message_notifier import MessageNotifier
from portal_messaging.infrastructure.storage.file_storage import FileStorage
from portal_messaging.repositories.conversation_participant_repository import (
    ConversationParticipantRepository,
)
from portal_messaging.repositories.conversation_repository import ConversationRepository
from portal_messaging.repositories.message_reaction_repository import MessageReactionRepository
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.repositories.project_repository import ProjectRepository
from portal_messaging.repositories.user_repository import UserRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard
from portal_messaging.services.attachment_service import AttachmentService
from portal_messaging.services.conversation_service import ConversationService
from portal_messaging.services.message_projector import MessageProjector
from portal_messaging.services.message_query_service import MessageQueryService
from portal_messaging.services.message_service import MessageService
from portal_messaging.services.reaction_service import ReactionService
from portal_messaging.services.read_cursor_service import ReadCursorService


@dataclass(frozen=True)
class MessagingServices:
    guard: ParticipantAccessGuard
    conversations: ConversationService
    messages: MessageService
    reactions: ReactionService
    read_cursor: ReadCursorService
    queries: MessageQueryService
    attachments: AttachmentService


def build_messaging_services(
    session: Session,
    *,
    storage: FileStorage,
    message_notifier: MessageNotifier,
    conversation_notifier: ConversationNotifier,
    clock: Clock = utcnow,
) -> MessagingServices:
    """Monta o grafo de serviços sobre uma única sessão (uma por requisição)."""
    user_repo = UserRepository(session)
    project_repo = ProjectRepository(session)
    conv_repo = ConversationRepository(session)
    part_repo = ConversationParticipantRepository(session)
    msg_repo = MessageRepository(session)
    reaction_repo = MessageReactionRepository(session)

    guard = ParticipantAccessGuard(conv_repo=conv_repo, part_repo=part_repo, msg_repo=msg_repo)

    projector = MessageProjector(
        user_repo=user_repo,
        project_repo=project_repo,
        conv_repo=conv_repo,
        part_repo=part_repo,
        msg_repo=msg_repo,
        reaction_repo=reaction_repo,
        clock=clock,
        online_window_minutes=settings.online_window_minutes,
    )

    attachments = AttachmentService(
        storage=storage,
        allowed_mime_types=settings.allowed_mime_types,
        max_bytes=settings.max_attachment_bytes,
        url_prefix=f"{settings.api_prefix}/files",
        msg_repo=msg_repo,
        guard=guard,
    )

    read_cursor = ReadCursorService(
        guard=guard,
        part_repo=part_repo,
        msg_repo=msg_repo,
        notifier=conversation_notifier,
        clock=clock,
    )

    messages = MessageService(
        guard=guard,
        conv_repo=conv_repo,
        msg_repo=msg_repo,
        projector=projector,
        attachments=attachments,
        notifier=message_notifier,
        clock=clock,
        edit_window_minutes=settings.message_edit_window_minutes,
    )

    return MessagingServices(
        guard=guard,
        conversations=ConversationService(
            guard=guard,
            conv_repo=conv_repo,
            part_repo=part_repo,
            user_repo=user_repo,
            project_repo=project_repo,
            projector=projector,
            messages=messages,
            notifier=conversation_notifier,
            clock=clock,
        ),
        messages=messages,
        reactions=ReactionService(
            guard=guard,
            reaction_repo=reaction_repo,
            projector=projector,
            notifier=message_notifier,
            clock=clock,
        ),
        read_cursor=read_cursor,
        queries=MessageQueryService(
            guard=guard,
            conv_repo=conv_repo,
            msg_repo=msg_repo,
            projector=projector,
            read_cursor=read_cursor,
            max_page_size=settings.max_page_size,
        ),
        attachments=attachments,
    )

# portal_messaging/services/message_projector.py
"""
Projeção de models em visões de leitura, sempre do ponto de vista de um usuário.

Status nunca é gravado: na visão de quem enviou, a mensagem está `Read` quando
o cursor de leitura da outra parte já passou do `sent_at`; caso contrário,
`Sent`. Na visão de quem recebeu não há status.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from portal_messaging.core.clock import Clock, utcnow
from portal_messaging.entities.conversation import (
    ConversationSummary,
    ConversationView,
    ParticipantStatus,
    ProjectSummary,
)
from portal_messaging.entities.message import (
    ActiveBody,
    AttachmentInfo,
    DeletedBody,
    MessageBody,
    MessageStatus,
    MessageType,
    MessageView,
    ReactionGroup,
)
from portal_messaging.entities.user import UserSummary
from portal_messaging.infrastructure.database.models.conversation_model import ConversationModel
from portal_messaging.infrastructure.database.models.conversation_participant_model import (
    ConversationParticipantModel,
)
from portal_messaging.infrastructure.database.models.message_model import MessageModel
from portal_messaging.infrastructure.database.models.message_reaction_model import MessageReactionModel
from portal_messaging.infrastructure.database.models.project_model import ProjectModel
from portal_messaging.infrastructure.database.models.user_model import UserModel
from portal_messaging.repositories.conversation_participant_repository import (
    ConversationParticipantRepository,
)
from portal_messaging.repositories.conversation_repository import ConversationRepository
from portal_messaging.repositories.message_reaction_repository import MessageReactionRepository
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.repositories.project_repository import ProjectRepository
from portal_messaging.repositories.user_repository import UserRepository


ReadCursor = tuple[datetime, Optional[int]]


def derive_status(
    *, sender_id: int, viewer_id: int, message_id: int, sent_at: datetime, other_read_cursor: Optional[ReadCursor]
) -> Optional[MessageStatus]:
    if sender_id != viewer_id:
        return None
    if other_read_cursor is not None:
        read_at, read_message_id = other_read_cursor
        if (sent_at, message_id) <= (read_at, read_message_id or 0):
            return MessageStatus.READ
    return MessageStatus.SENT


def body_of(msg: MessageModel) -> MessageBody:
    if msg.is_deleted:
        return DeletedBody(placeholder_kind=MessageType(msg.message_type))
    return ActiveBody(content=msg.content or "")


def group_reactions(
    rows: list[tuple[MessageReactionModel, UserModel]],
    *,
    viewer_id: int,
    summarize,
) -> list[ReactionGroup]:
    # rows já vêm em ordem de criação: a ordem dos grupos é a da primeira reação
    order: list[str] = []
    users_by_emoji: dict[str, list[UserModel]] = {}
    for reaction, user in rows:
        if reaction.emoji not in users_by_emoji:
            order.append(reaction.emoji)
            users_by_emoji[reaction.emoji] = []
        users_by_emoji[reaction.emoji].append(user)

    return [
        ReactionGroup(
            emoji=emoji,
            users=[summarize(u) for u in users_by_emoji[emoji]],
            has_current_user_reacted=any(u.id == viewer_id for u in users_by_emoji[emoji]),
        )
        for emoji in order
    ]


class MessageProjector:
    def __init__(
        self,
        *,
        user_repo: UserRepository,
        project_repo: ProjectRepository,
        conv_repo: ConversationRepository,
        part_repo: ConversationParticipantRepository,
        msg_repo: MessageRepository,
        reaction_repo: MessageReactionRepository,
        clock: Clock = utcnow,
        online_window_minutes: int = 5,
    ) -> None:
        self._user_repo = user_repo
        self._project_repo = project_repo
        self._conv_repo = conv_repo
        self._part_repo = part_repo
        self._msg_repo = msg_repo
        self._reaction_repo = reaction_repo
        self._clock = clock
        self._online_window = timedelta(minutes=online_window_minutes)

    # -------------------------
    # usuários / projetos
    # -------------------------
    def user_summary(self, user: UserModel) -> UserSummary:
        last_login = user.last_login_at
        is_online = last_login is not None and (self._clock() - last_login) <= self._online_window
        return UserSummary(
            id=int(user.id),
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            profile_image_url=user.profile_image_url,
            role=user.role,
            is_online=is_online,
            last_seen_at=last_login,
        )

    def _project_summary(self, project: ProjectModel | None) -> ProjectSummary | None:
        if project is None:
            return None
        return ProjectSummary(id=int(project.id), title=project.title, description=project.description)

    def _participant_status(self, participant: ConversationParticipantModel | None) -> ParticipantStatus:
        if participant is None:
            return ParticipantStatus(
                last_read_at=None, last_seen_at=None, is_muted=False, is_archived=False, is_pinned=False
            )
        return ParticipantStatus(
            last_read_at=participant.last_read_at,
            last_seen_at=participant.last_seen_at,
            is_muted=bool(participant.is_muted),
            is_archived=bool(participant.is_archived),
            is_pinned=bool(participant.is_pinned),
        )

    # -------------------------
    # mensagens
    # -------------------------
    def _other_read_cursors(self, conversation_ids: list[int], viewer_id: int) -> dict[int, Optional[ReadCursor]]:
        """{conversation_id: (last_read_at, last_read_message_id) da outra parte}"""
        conversations = self._conv_repo.get_many(conversation_ids)
        participants = self._part_repo.list_by_conversation_ids(conversation_ids)

        cursors: dict[int, Optional[ReadCursor]] = {}
        for conv_id, conv in conversations.items():
            other = participants.get((conv_id, conv.other_party_id(viewer_id)))
            if other is None or other.last_read_at is None:
                cursors[conv_id] = None
            else:
                cursors[conv_id] = (other.last_read_at, other.last_read_message_id)
        return cursors

    def _view(
        self,
        msg: MessageModel,
        *,
        viewer_id: int,
        senders: dict[int, UserSummary],
        other_read_cursor: Optional[ReadCursor],
        reply_to: Optional[MessageView] = None,
        reactions: Optional[list[ReactionGroup]] = None,
    ) -> MessageView:
        attachment = None
        if msg.attachment_url:
            attachment = AttachmentInfo(
                url=msg.attachment_url,
                name=msg.attachment_name or "",
                mime_type=msg.attachment_mime_type or "application/octet-stream",
                size=int(msg.attachment_size or 0),
            )

        return MessageView(
            id=int(msg.id),
            conversation_id=int(msg.conversation_id),
            sender_id=int(msg.sender_id),
            sender=senders[msg.sender_id],
            body=body_of(msg),
            message_type=MessageType(msg.message_type),
            attachment=attachment,
            sent_at=msg.sent_at,
            edited_at=msg.edited_at,
            is_edited=bool(msg.is_edited),
            is_deleted=bool(msg.is_deleted),
            is_system=bool(msg.is_system),
            is_read=bool(msg.is_read),
            read_at=msg.read_at,
            reply_to_message_id=msg.reply_to_message_id,
            is_sent_by_current_user=msg.sender_id == viewer_id,
            status=derive_status(
                sender_id=msg.sender_id,
                viewer_id=viewer_id,
                message_id=int(msg.id),
                sent_at=msg.sent_at,
                other_read_cursor=other_read_cursor,
            ),
            reply_to=reply_to,
            reactions=reactions or [],
        )

    def project_messages(self, messages: list[MessageModel], *, viewer_id: int) -> list[MessageView]:
        """Projeta em lote (remetentes, respostas e reações com poucas queries). Mantém a ordem recebida."""
        if not messages:
            return []

        by_id = {m.id: m for m in messages}
        missing_reply_ids = [
            m.reply_to_message_id
            for m in messages
            if m.reply_to_message_id is not None and m.reply_to_message_id not in by_id
        ]
        replies = dict(by_id)
        replies.update(self._msg_repo.get_many(missing_reply_ids))

        sender_ids = {m.sender_id for m in replies.values()}
        senders = {uid: self.user_summary(u) for uid, u in self._user_repo.get_many(list(sender_ids)).items()}

        cursors = self._other_read_cursors(list({m.conversation_id for m in messages}), viewer_id)
        reaction_rows = self._reaction_repo.list_rows_by_message_ids(list(by_id))

        out: list[MessageView] = []
        for msg in messages:
            reply_view = None
            target = replies.get(msg.reply_to_message_id) if msg.reply_to_message_id is not None else None
            if target is not None:
                # um nível só: a prévia não carrega a própria resposta nem reações
                reply_view = self._view(
                    target,
                    viewer_id=viewer_id,
                    senders=senders,
                    other_read_cursor=cursors.get(target.conversation_id),
                )

            out.append(
                self._view(
                    msg,
                    viewer_id=viewer_id,
                    senders=senders,
                    other_read_cursor=cursors.get(msg.conversation_id),
                    reply_to=reply_view,
                    reactions=group_reactions(
                        reaction_rows.get(msg.id, []),
                        viewer_id=viewer_id,
                        summarize=self.user_summary,
                    ),
                )
            )
        return out

    def project_message(self, msg: MessageModel, *, viewer_id: int) -> MessageView:
        return self.project_messages([msg], viewer_id=viewer_id)[0]

    def reactions_of(self, message_id: int, *, viewer_id: int) -> list[ReactionGroup]:
        rows = self._reaction_repo.list_rows_by_message_ids([message_id]).get(message_id, [])
        return group_reactions(rows, viewer_id=viewer_id, summarize=self.user_summary)

    # -------------------------
    # conversas
    # -------------------------
    def conversation_view(self, conv: ConversationModel, *, viewer_id: int) -> ConversationView:
        users = self._user_repo.get_many([conv.freelancer_id, conv.client_id])
        freelancer = self.user_summary(users[conv.freelancer_id])
        client = self.user_summary(users[conv.client_id])

        project = None
        if conv.project_id is not None:
            project = self._project_summary(self._project_repo.get_by_id(conv.project_id))

        latest = self._msg_repo.get_latest(conv.id)
        last_message = self.project_message(latest, viewer_id=viewer_id) if latest is not None else None

        participant = self._part_repo.get(conversation_id=conv.id, user_id=viewer_id)

        return ConversationView(
            id=int(conv.id),
            freelancer_id=int(conv.freelancer_id),
            client_id=int(conv.client_id),
            project_id=conv.project_id,
            subject=conv.subject,
            created_at=conv.created_at,
            updated_at=conv.updated_at,
            last_message_at=conv.last_message_at,
            is_active=bool(conv.is_active),
            freelancer=freelancer,
            client=client,
            other_participant=client if conv.freelancer_id == viewer_id else freelancer,
            project=project,
            last_message=last_message,
            unread_count=self._part_repo.get_unread_count(conversation_id=conv.id, user_id=viewer_id),
            current_user_status=self._participant_status(participant),
        )

    def conversation_summaries(
        self,
        rows: list[tuple[ConversationModel, ConversationParticipantModel]],
        *,
        viewer_id: int,
    ) -> list[ConversationSummary]:
        if not rows:
            return []

        conv_ids = [conv.id for conv, _ in rows]
        others = self._user_repo.get_many([conv.other_party_id(viewer_id) for conv, _ in rows])
        projects = self._project_repo.get_many([conv.project_id for conv, _ in rows])
        unread = self._part_repo.get_unread_count_by_conversation(user_id=viewer_id)

        latest = self._msg_repo.get_latest_by_conversation_ids(conv_ids)
        latest_views = {
            view.conversation_id: view
            for view in self.project_messages(list(latest.values()), viewer_id=viewer_id)
        }

        out: list[ConversationSummary] = []
        for conv, participant in rows:
            out.append(
                ConversationSummary(
                    id=int(conv.id),
                    other_participant=self.user_summary(others[conv.other_party_id(viewer_id)]),
                    project=self._project_summary(projects.get(conv.project_id)),
                    subject=conv.subject,
                    last_message=latest_views.get(conv.id),
                    unread_count=int(unread.get(conv.id, 0)),
                    last_activity=conv.last_message_at or conv.created_at,
                    is_pinned=bool(participant.is_pinned),
                    is_muted=bool(participant.is_muted),
                    is_archived=bool(participant.is_archived),
                )
            )
        return out

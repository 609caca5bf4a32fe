# tests/test_conversation_service.py
from __future__ import annotations

import pytest
from sqlalchemy import select

from conftest import make_user
from portal_messaging.core.exceptions import (
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from portal_messaging.infrastructure.database.models import (
    ConversationModel,
    ConversationParticipantModel,
    MessageModel,
)


def test_start_creates_conversation_participants_and_first_message(services, session, freelancer, client_user, notifier):
    view = services.conversations.start_conversation(
        initiator_id=client_user.id,
        participant_id=freelancer.id,
        initial_message="  Hi, interested in the redesign project?  ",
        subject="  Redesign  ",
    )

    # papel decide as partes, não quem iniciou
    assert view.freelancer_id == freelancer.id
    assert view.client_id == client_user.id
    assert view.subject == "Redesign"
    assert view.other_participant.id == freelancer.id
    assert view.last_message is not None
    assert view.last_message.content == "Hi, interested in the redesign project?"
    assert view.unread_count == 0
    assert view.last_message_at == view.last_message.sent_at

    rows = session.execute(select(ConversationParticipantModel)).scalars().all()
    assert {r.user_id for r in rows} == {freelancer.id, client_user.id}
    by_user = {r.user_id: r for r in rows}
    assert by_user[client_user.id].last_read_at is not None
    assert by_user[freelancer.id].last_read_at is None

    assert notifier.names() == ["conversation:new", "message:new"]


def test_start_twice_reuses_the_active_conversation(services, session, freelancer, client_user):
    first = services.conversations.start_conversation(
        initiator_id=freelancer.id, participant_id=client_user.id, initial_message="one"
    )
    second = services.conversations.start_conversation(
        initiator_id=client_user.id, participant_id=freelancer.id, initial_message="two"
    )

    assert second.id == first.id
    assert len(session.execute(select(ConversationModel)).scalars().all()) == 1
    contents = [m.content for m in session.execute(select(MessageModel).order_by(MessageModel.id)).scalars()]
    assert contents == ["one", "two"]


def test_start_with_project_only_matches_that_project(services, session, freelancer, client_user, project):
    plain = services.conversations.start_conversation(
        initiator_id=freelancer.id, participant_id=client_user.id, initial_message="general"
    )
    scoped = services.conversations.start_conversation(
        initiator_id=freelancer.id,
        participant_id=client_user.id,
        initial_message="about the project",
        project_id=project.id,
    )

    assert scoped.id != plain.id
    assert scoped.project is not None
    assert scoped.project.title == "Website redesign"

    again = services.conversations.start_conversation(
        initiator_id=client_user.id,
        participant_id=freelancer.id,
        initial_message="follow up",
        project_id=project.id,
    )
    assert again.id == scoped.id


def test_reuse_unarchives_for_the_initiator(services, freelancer, client_user, conversation):
    services.conversations.update_settings(
        user_id=freelancer.id, conversation_id=conversation.id, is_archived=True
    )
    assert services.conversations.list_user_conversations(user_id=freelancer.id) == []

    services.conversations.start_conversation(
        initiator_id=freelancer.id, participant_id=client_user.id, initial_message="back again"
    )

    listed = services.conversations.list_user_conversations(user_id=freelancer.id)
    assert [s.id for s in listed] == [conversation.id]


def test_start_rejects_self_conversation(services, freelancer):
    with pytest.raises(InvalidOperationError):
        services.conversations.start_conversation(
            initiator_id=freelancer.id, participant_id=freelancer.id, initial_message="me"
        )


@pytest.mark.parametrize("message", ["", "   ", "x" * 5001])
def test_start_validates_initial_message(services, freelancer, client_user, message):
    with pytest.raises(ValidationError):
        services.conversations.start_conversation(
            initiator_id=freelancer.id, participant_id=client_user.id, initial_message=message
        )


def test_start_validates_subject_length(services, freelancer, client_user):
    with pytest.raises(ValidationError):
        services.conversations.start_conversation(
            initiator_id=freelancer.id,
            participant_id=client_user.id,
            initial_message="hi",
            subject="s" * 201,
        )


def test_start_with_unknown_participant_or_project(services, freelancer, client_user):
    with pytest.raises(NotFoundError):
        services.conversations.start_conversation(
            initiator_id=freelancer.id, participant_id=999_999, initial_message="hi"
        )
    with pytest.raises(NotFoundError):
        services.conversations.start_conversation(
            initiator_id=freelancer.id, participant_id=client_user.id, initial_message="hi", project_id=999_999
        )


def test_role_assignment_falls_back_to_lowest_id(services, session):
    a = make_user(session, role="admin")
    b = make_user(session, role="admin")

    view = services.conversations.start_conversation(
        initiator_id=b.id, participant_id=a.id, initial_message="hi"
    )

    assert view.freelancer_id == min(a.id, b.id)
    assert view.client_id == max(a.id, b.id)
    assert view.freelancer_id != view.client_id


def test_get_conversation_is_guarded(services, conversation, outsider):
    with pytest.raises(ForbiddenError):
        services.conversations.get_conversation(user_id=outsider.id, conversation_id=conversation.id)
    with pytest.raises(NotFoundError):
        services.conversations.get_conversation(user_id=outsider.id, conversation_id=999_999)


def test_settings_only_touch_the_callers_row(services, session, freelancer, client_user, conversation):
    ok = services.conversations.update_settings(
        user_id=client_user.id,
        conversation_id=conversation.id,
        is_muted=True,
        is_pinned=True,
    )
    assert ok is True

    rows = {
        r.user_id: r
        for r in session.execute(select(ConversationParticipantModel)).scalars()
    }
    assert rows[client_user.id].is_muted is True
    assert rows[client_user.id].is_pinned is True
    assert rows[client_user.id].is_archived is False
    assert rows[freelancer.id].is_muted is False
    assert rows[freelancer.id].is_pinned is False

    view = services.conversations.get_conversation(user_id=client_user.id, conversation_id=conversation.id)
    assert view.current_user_status.is_muted is True


def test_list_orders_pinned_first_then_recent_activity(services, session, freelancer):
    c1 = make_user(session, role="client")
    c2 = make_user(session, role="client")
    c3 = make_user(session, role="client")

    conv1 = services.conversations.start_conversation(
        initiator_id=freelancer.id, participant_id=c1.id, initial_message="first"
    )
    conv2 = services.conversations.start_conversation(
        initiator_id=freelancer.id, participant_id=c2.id, initial_message="second"
    )
    conv3 = services.conversations.start_conversation(
        initiator_id=freelancer.id, participant_id=c3.id, initial_message="third"
    )

    listed = services.conversations.list_user_conversations(user_id=freelancer.id)
    assert [s.id for s in listed] == [conv3.id, conv2.id, conv1.id]

    services.conversations.update_settings(user_id=freelancer.id, conversation_id=conv1.id, is_pinned=True)
    services.conversations.update_settings(user_id=freelancer.id, conversation_id=conv2.id, is_archived=True)

    listed = services.conversations.list_user_conversations(user_id=freelancer.id)
    assert [s.id for s in listed] == [conv1.id, conv3.id]
    assert listed[0].is_pinned is True

    with_archived = services.conversations.list_user_conversations(user_id=freelancer.id, include_archived=True)
    assert [s.id for s in with_archived] == [conv1.id, conv3.id, conv2.id]


def test_list_summary_shows_other_party_and_unread(services, freelancer, client_user, conversation):
    [summary] = services.conversations.list_user_conversations(user_id=client_user.id)

    assert summary.other_participant.id == freelancer.id
    assert summary.other_participant.display_name == "Ana Lima"
    assert summary.other_participant.is_online is True
    assert summary.unread_count == 1
    assert summary.last_message.content == "Hello there"
    assert summary.last_message.status is None
    assert summary.last_activity == summary.last_message.sent_at


def test_every_conversation_has_two_distinct_parties(services, session, freelancer, client_user, outsider):
    services.conversations.start_conversation(
        initiator_id=freelancer.id, participant_id=client_user.id, initial_message="a"
    )
    services.conversations.start_conversation(
        initiator_id=outsider.id, participant_id=freelancer.id, initial_message="b"
    )

    for conv in session.execute(select(ConversationModel)).scalars():
        assert len({conv.freelancer_id, conv.client_id}) == 2

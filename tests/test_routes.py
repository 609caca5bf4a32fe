# tests/test_routes.py
from __future__ import annotations

import io

import pytest

from conftest import auth_header
from portal_messaging.infrastructure.database.models import ProjectModel, UserModel
from portal_messaging.infrastructure.database.session import db_session
from portal_messaging.main import create_app


@pytest.fixture(scope="module")
def app():
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def http(app):
    return app.test_client()


@pytest.fixture()
def people() -> dict[str, int]:
    with db_session() as session:
        alice = UserModel(username="alice", email="alice@example.com", first_name="Alice", last_name="Costa", role="freelancer")
        bob = UserModel(username="bob", email="bob@example.com", role="client")
        eve = UserModel(username="eve", email="eve@example.com", role="client")
        project = ProjectModel(title="Redesign", description=None)
        session.add_all([alice, bob, eve, project])
        session.flush()
        return {"alice": alice.id, "bob": bob.id, "eve": eve.id, "project": project.id}


def _start(http, people, text="Hi, interested in the redesign project?"):
    resp = http.post(
        "/api/conversations",
        json={"participantId": people["bob"], "initialMessage": text},
        headers=auth_header(people["alice"]),
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def test_health_endpoints(http):
    assert http.get("/health").get_json() == {"status": "ok"}
    assert http.get("/api/health").status_code == 200
    assert http.get("/health/db").get_json() == {"db": "ok"}


def test_requests_without_token_are_unauthorized(http):
    resp = http.get("/api/conversations")
    assert resp.status_code == 401
    assert "error" in resp.get_json()

    resp = http.get("/api/conversations", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_start_conversation_response_is_camel_case(http, people):
    body = _start(http, people)

    assert body["freelancerId"] == people["alice"]
    assert body["clientId"] == people["bob"]
    assert body["otherParticipant"]["username"] == "bob"
    assert body["freelancer"]["displayName"] == "Alice Costa"
    assert body["unreadCount"] == 0
    assert body["lastMessage"]["content"] == "Hi, interested in the redesign project?"
    assert body["lastMessage"]["isSentByCurrentUser"] is True
    assert body["lastMessage"]["status"] == "Sent"
    assert body["currentUserStatus"]["isArchived"] is False


def test_snake_case_input_is_accepted(http, people):
    resp = http.post(
        "/api/conversations",
        json={"participant_id": people["bob"], "initial_message": "snake", "project_id": people["project"]},
        headers=auth_header(people["alice"]),
    )
    assert resp.status_code == 201
    assert resp.get_json()["project"]["title"] == "Redesign"


def test_validation_errors_carry_details(http, people):
    resp = http.post(
        "/api/conversations",
        json={"participantId": people["bob"]},
        headers=auth_header(people["alice"]),
    )
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Validation failed"
    assert any("initialMessage" in d["field"] or "initial_message" in d["field"] for d in body["details"])

    resp = http.post(
        "/api/conversations",
        json={"participantId": people["bob"], "initialMessage": "   "},
        headers=auth_header(people["alice"]),
    )
    assert resp.status_code == 400
    assert resp.get_json()["details"][0]["field"] == "content"


def test_self_conversation_is_invalid_operation(http, people):
    resp = http.post(
        "/api/conversations",
        json={"participantId": people["alice"], "initialMessage": "me"},
        headers=auth_header(people["alice"]),
    )
    assert resp.status_code == 400


def test_outsider_gets_403_and_missing_gets_404(http, people):
    conv = _start(http, people)

    assert http.get(f"/api/conversations/{conv['id']}", headers=auth_header(people["eve"])).status_code == 403
    assert http.get("/api/conversations/999999", headers=auth_header(people["eve"])).status_code == 404


def test_example_scenario(http, people):
    alice, bob = auth_header(people["alice"]), auth_header(people["bob"])
    conv = _start(http, people)
    conv_id = conv["id"]
    first_id = conv["lastMessage"]["id"]

    [bob_summary] = http.get("/api/conversations", headers=bob).get_json()
    assert bob_summary["unreadCount"] == 1
    [alice_summary] = http.get("/api/conversations", headers=alice).get_json()
    assert alice_summary["unreadCount"] == 0

    resp = http.post(
        "/api/messages",
        json={"conversationId": conv_id, "content": "Yes, tell me more", "replyToMessageId": first_id},
        headers=bob,
    )
    assert resp.status_code == 201
    reply = resp.get_json()
    assert reply["replyTo"]["content"] == "Hi, interested in the redesign project?"

    [alice_summary] = http.get("/api/conversations", headers=alice).get_json()
    assert alice_summary["unreadCount"] == 1

    for _ in range(2):
        resp = http.post(f"/api/messages/{reply['id']}/reactions", json={"emoji": "👍"}, headers=alice)
        assert resp.status_code == 200
    reactions = resp.get_json()["reactions"]
    assert [(r["emoji"], r["count"], r["hasCurrentUserReacted"]) for r in reactions] == [("👍", 1, True)]

    assert http.delete(f"/api/messages/{first_id}", headers=alice).get_json() == {"success": True}

    page = http.get(f"/api/conversations/{conv_id}/messages", headers=bob).get_json()
    by_id = {m["id"]: m for m in page["messages"]}
    assert by_id[first_id]["content"] == "This message was deleted"
    assert by_id[first_id]["isDeleted"] is True
    assert by_id[reply["id"]]["replyTo"]["id"] == first_id
    assert by_id[reply["id"]]["replyTo"]["content"] == "This message was deleted"
    assert page["conversation"]["unreadCount"] == 0
    assert page["totalCount"] == 2


def test_multipart_send_and_download(http, people):
    conv = _start(http, people)
    bob = auth_header(people["bob"])

    resp = http.post(
        "/api/messages",
        data={
            "conversationId": str(conv["id"]),
            "content": "",
            "type": "Text",
            "replyToMessageId": "",
            "attachment": (io.BytesIO(b"col1,col2\n"), "sheet.csv", "text/csv"),
        },
        headers=bob,
        content_type="multipart/form-data",
    )
    assert resp.status_code == 201, resp.get_json()
    msg = resp.get_json()
    assert msg["messageType"] == "File"
    assert msg["attachment"]["name"] == "sheet.csv"
    assert msg["attachment"]["isImage"] is False

    url = msg["attachment"]["url"]
    download = http.get(url, headers=auth_header(people["alice"]))
    assert download.status_code == 200
    assert download.data == b"col1,col2\n"
    download.close()

    assert http.get(url, headers=auth_header(people["eve"])).status_code == 403


def test_unsupported_attachment_type_is_415(http, people):
    conv = _start(http, people)
    resp = http.post(
        "/api/messages",
        data={
            "conversationId": str(conv["id"]),
            "attachment": (io.BytesIO(b"#!/bin/sh"), "run.sh", "application/x-sh"),
        },
        headers=auth_header(people["bob"]),
        content_type="multipart/form-data",
    )
    assert resp.status_code == 415


def test_edit_settings_mark_read_and_stats(http, people):
    alice, bob = auth_header(people["alice"]), auth_header(people["bob"])
    conv = _start(http, people)
    conv_id = conv["id"]

    resp = http.put(f"/api/messages/{conv['lastMessage']['id']}", json={"content": "Edited hello"}, headers=alice)
    assert resp.status_code == 200
    assert resp.get_json()["isEdited"] is True

    resp = http.put(f"/api/messages/{conv['lastMessage']['id']}", json={"content": "hijack"}, headers=bob)
    assert resp.status_code == 403

    stats = http.get("/api/messages/stats", headers=bob).get_json()
    assert stats["totalConversations"] == 1
    assert stats["unreadConversations"] == 1
    assert stats["unreadMessages"] == 1
    assert stats["totalMessages"] == 1
    assert len(stats["recentConversations"]) == 1

    assert http.post(f"/api/conversations/{conv_id}/mark-read", headers=bob).get_json() == {"success": True}
    assert http.get("/api/messages/stats", headers=bob).get_json()["unreadMessages"] == 0

    resp = http.put(f"/api/conversations/{conv_id}/settings", json={"isArchived": True}, headers=bob)
    assert resp.get_json() == {"success": True}
    assert http.get("/api/conversations", headers=bob).get_json() == []
    archived = http.get("/api/conversations?includeArchived=true", headers=bob).get_json()
    assert [c["isArchived"] for c in archived] == [True]


def test_search_skips_deleted_messages(http, people):
    alice, bob = auth_header(people["alice"]), auth_header(people["bob"])
    conv = _start(http, people, text="Budget for the REDESIGN")

    http.post("/api/messages", json={"conversationId": conv["id"], "content": "redesign timeline?"}, headers=bob)
    http.delete(f"/api/messages/{conv['lastMessage']['id']}", headers=alice)

    found = http.get("/api/messages/search?query=redesign", headers=alice).get_json()
    assert [m["content"] for m in found] == ["redesign timeline?"]

    assert http.get("/api/messages/search?query=redesign", headers=auth_header(people["eve"])).get_json() == []


def test_remove_reaction_and_list(http, people):
    alice = auth_header(people["alice"])
    conv = _start(http, people)
    msg_id = conv["lastMessage"]["id"]

    http.post(f"/api/messages/{msg_id}/reactions", json={"emoji": "🎉"}, headers=alice)
    listed = http.get(f"/api/messages/{msg_id}/reactions", headers=alice).get_json()
    assert [r["emoji"] for r in listed] == ["🎉"]

    resp = http.delete(f"/api/messages/{msg_id}/reactions/🎉", headers=alice)
    assert resp.status_code == 200
    assert resp.get_json()["reactions"] == []

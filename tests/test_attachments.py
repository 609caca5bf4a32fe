# tests/test_attachments.py
from __future__ import annotations

import io

import pytest
from sqlalchemy import func, select

from portal_messaging.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from portal_messaging.entities.message import MessageType
from portal_messaging.infrastructure.database.models import MessageModel
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.services.attachment_service import AttachmentUpload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(data: bytes, filename: str, mime: str | None) -> AttachmentUpload:
    return AttachmentUpload(fileobj=io.BytesIO(data), filename=filename, mime_type=mime)


def _stored_files(storage_root) -> list:
    return [p for p in storage_root.rglob("*") if p.is_file()]


def test_image_attachment_without_text(services, client_user, conversation, tmp_path):
    view = services.messages.send_message(
        sender_id=client_user.id,
        conversation_id=conversation.id,
        content=None,
        attachment=_upload(PNG_BYTES, "mockup.png", "image/png"),
    )

    # Text com anexo vira o tipo inferido
    assert view.message_type == MessageType.IMAGE
    assert view.content == ""
    assert view.attachment is not None
    assert view.attachment.name == "mockup.png"
    assert view.attachment.size == len(PNG_BYTES)
    assert view.attachment.is_image is True
    assert view.attachment.url.startswith("/api/files/messages/")

    files = _stored_files(tmp_path / "files")
    assert len(files) == 1
    assert files[0].parent.name == str(conversation.id)
    assert files[0].read_bytes() == PNG_BYTES


def test_declared_invoice_share_is_kept(services, client_user, conversation):
    view = services.messages.send_message(
        sender_id=client_user.id,
        conversation_id=conversation.id,
        content="Invoice #12",
        message_type=MessageType.INVOICE_SHARE,
        attachment=_upload(b"%PDF-1.4 test", "invoice.pdf", "application/pdf"),
    )
    assert view.message_type == MessageType.INVOICE_SHARE
    assert view.attachment.is_image is False


def test_disallowed_mime_is_rejected_before_anything_is_written(services, session, client_user, conversation, tmp_path):
    with pytest.raises(UnsupportedMediaTypeError):
        services.messages.send_message(
            sender_id=client_user.id,
            conversation_id=conversation.id,
            content="run me",
            attachment=_upload(b"MZ...", "tool.exe", "application/x-msdownload"),
        )
    assert _stored_files(tmp_path / "files") == []


def test_missing_filename_is_a_validation_error(services, client_user, conversation):
    with pytest.raises(ValidationError):
        services.messages.send_message(
            sender_id=client_user.id,
            conversation_id=conversation.id,
            content="x",
            attachment=_upload(b"abc", "   ", "text/plain"),
        )


def test_mime_is_guessed_from_filename_when_missing(services, client_user, conversation):
    view = services.messages.send_message(
        sender_id=client_user.id,
        conversation_id=conversation.id,
        content="notes",
        attachment=_upload(b"a,b\n1,2\n", "data.csv", None),
    )
    assert view.attachment.mime_type == "text/csv"
    assert view.message_type == MessageType.FILE


def test_oversized_attachment_leaves_no_bytes_and_no_row(services, session, client_user, conversation, tmp_path):
    before = session.execute(select(func.count(MessageModel.id))).scalar_one()
    too_big = b"\x00" * (10 * 1024 * 1024 + 1)

    with pytest.raises(PayloadTooLargeError):
        services.messages.send_message(
            sender_id=client_user.id,
            conversation_id=conversation.id,
            content="big",
            attachment=_upload(too_big, "huge.pdf", "application/pdf"),
        )

    assert _stored_files(tmp_path / "files") == []
    assert session.execute(select(func.count(MessageModel.id))).scalar_one() == before


def test_storage_stops_at_the_limit(storage, tmp_path):
    with pytest.raises(PayloadTooLargeError):
        storage.save(
            fileobj=io.BytesIO(b"x" * 32),
            original_name="a.txt",
            content_type="text/plain",
            folder="messages/1",
            max_bytes=16,
        )
    assert _stored_files(tmp_path / "files") == []


def test_storage_refuses_path_traversal(storage):
    with pytest.raises(ValueError):
        storage.resolve(stored_name="../../etc/passwd")


def test_download_is_for_participants_only(services, client_user, freelancer, outsider, conversation):
    view = services.messages.send_message(
        sender_id=client_user.id,
        conversation_id=conversation.id,
        content="brief",
        attachment=_upload(b"hello", "brief.txt", "text/plain"),
    )
    stored_name = services.attachments.stored_name_from_url(view.attachment.url)

    f = services.attachments.open_for_download(user_id=freelancer.id, stored_name=stored_name)
    assert f.path.read_bytes() == b"hello"
    assert f.name == "brief.txt"
    assert f.mime_type == "text/plain"

    with pytest.raises(ForbiddenError):
        services.attachments.open_for_download(user_id=outsider.id, stored_name=stored_name)


def test_deleted_message_attachment_is_not_found(services, client_user, freelancer, conversation, tmp_path):
    view = services.messages.send_message(
        sender_id=client_user.id,
        conversation_id=conversation.id,
        content="",
        attachment=_upload(PNG_BYTES, "photo.png", "image/png"),
    )
    stored_name = services.attachments.stored_name_from_url(view.attachment.url)

    services.messages.delete_message(user_id=client_user.id, message_id=view.id)

    with pytest.raises(NotFoundError):
        services.attachments.open_for_download(user_id=freelancer.id, stored_name=stored_name)

    page = services.queries.get_conversation_messages(user_id=freelancer.id, conversation_id=conversation.id)
    deleted = [m for m in page.messages if m.id == view.id][0]
    assert deleted.attachment is None
    assert deleted.content == "This image was deleted"
    assert _stored_files(tmp_path / "files") == []


def test_stored_bytes_are_discarded_when_the_row_fails(services, client_user, conversation, tmp_path, monkeypatch):
    def _boom(self, model):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(MessageRepository, "add", _boom)

    with pytest.raises(RuntimeError, match="insert failed"):
        services.messages.send_message(
            sender_id=client_user.id,
            conversation_id=conversation.id,
            content="",
            attachment=_upload(PNG_BYTES[:10], "tiny.png", "image/png"),
        )

    assert _stored_files(tmp_path / "files") == []

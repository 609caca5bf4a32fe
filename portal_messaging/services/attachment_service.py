# portal_messaging/services/attachment_service.py
from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from portal_messaging.core.exceptions import (
    NotFoundError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from portal_messaging.infrastructure.storage.file_storage import FileStorage
from portal_messaging.repositories.message_repository import MessageRepository
from portal_messaging.services.access_guard import ParticipantAccessGuard

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttachmentUpload:
    fileobj: BinaryIO
    filename: str | None
    mime_type: str | None


@dataclass(frozen=True)
class StoredAttachment:
    url: str
    name: str
    mime_type: str
    size: int


@dataclass(frozen=True)
class DownloadableFile:
    path: Path
    name: str
    mime_type: str


class AttachmentService:
    """Valida, grava e serve anexos. Os bytes ficam no FileStorage; o banco guarda só metadados."""

    def __init__(
        self,
        *,
        storage: FileStorage,
        allowed_mime_types: set[str],
        max_bytes: int,
        url_prefix: str,
        msg_repo: MessageRepository,
        guard: ParticipantAccessGuard,
    ) -> None:
        self._storage = storage
        self._allowed = {m.lower() for m in allowed_mime_types}
        self._max_bytes = max_bytes
        self._url_prefix = url_prefix.rstrip("/")
        self._msg_repo = msg_repo
        self._guard = guard

    def url_for(self, stored_name: str) -> str:
        return f"{self._url_prefix}/{stored_name}"

    def stored_name_from_url(self, url: str) -> str | None:
        prefix = f"{self._url_prefix}/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def validate(self, *, filename: str | None, mime_type: str | None) -> str:
        """Retorna o mime normalizado."""
        name = (filename or "").strip()
        if not name:
            raise ValidationError.for_field("attachment", "Attachment file name is required.")

        mime = (mime_type or "").split(";")[0].strip().lower()
        if not mime or mime == "application/octet-stream":
            guessed, _ = mimetypes.guess_type(name)
            mime = (guessed or mime).lower()

        if mime not in self._allowed:
            raise UnsupportedMediaTypeError(f"File type '{mime or 'unknown'}' is not allowed.")
        return mime

    def store(
        self,
        *,
        fileobj: BinaryIO,
        filename: str | None,
        mime_type: str | None,
        conversation_id: int,
    ) -> StoredAttachment:
        mime = self.validate(filename=filename, mime_type=mime_type)
        name = Path((filename or "").strip()).name

        stored = self._storage.save(
            fileobj=fileobj,
            original_name=name,
            content_type=mime,
            folder=f"messages/{int(conversation_id)}",
            max_bytes=self._max_bytes,
        )
        logger.info(
            "Attachment stored for conversation %s: %s (%s bytes)",
            conversation_id,
            stored.stored_name,
            stored.size_bytes,
        )
        return StoredAttachment(
            url=self.url_for(stored.stored_name),
            name=name,
            mime_type=mime,
            size=stored.size_bytes,
        )

    def discard(self, url: str) -> None:
        stored_name = self.stored_name_from_url(url)
        if stored_name is None:
            return
        self._storage.delete(stored_name=stored_name)
        logger.info("Attachment discarded: %s", stored_name)

    def open_for_download(self, *, user_id: int, stored_name: str) -> DownloadableFile:
        # só serve arquivo ainda referenciado por mensagem não apagada
        msg = self._msg_repo.find_by_attachment_url(self.url_for(stored_name))
        if msg is None:
            raise NotFoundError("File not found.")

        self._guard.ensure_conversation_access(user_id=user_id, conversation_id=msg.conversation_id)

        try:
            path = self._storage.resolve(stored_name=stored_name)
        except ValueError as e:
            raise NotFoundError("File not found.") from e

        return DownloadableFile(
            path=path,
            name=msg.attachment_name or path.name,
            mime_type=msg.attachment_mime_type or "application/octet-stream",
        )

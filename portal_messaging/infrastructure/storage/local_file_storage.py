# portal_messaging/infrastructure/storage/local_file_storage.py
from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

from portal_messaging.core.exceptions import PayloadTooLargeError, ServerError
from portal_messaging.infrastructure.storage.file_storage import FileStorage, StoredFile

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024  # 1MB


@dataclass(frozen=True)
class LocalFileStorageConfig:
    base_path: str


class LocalFileStorage(FileStorage):
    def __init__(self, *, config: LocalFileStorageConfig) -> None:
        raw = (config.base_path or "").strip()
        if not raw:
            raise ServerError("File storage is not configured (FILES_BASE_PATH is empty).")

        self._base = Path(raw).expanduser().resolve()

        try:
            self._base.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ServerError(f"Could not initialize local storage at '{self._base}': {e}") from e

        if not self._base.is_dir() or not os.access(self._base, os.W_OK):
            raise ServerError(f"Upload folder '{self._base}' is not a writable directory.")

    def _abs_path_from_stored(self, stored_name: str) -> Path:
        # stored_name é relativo (ex.: messages/12/uuid)
        abs_path = (self._base / Path(stored_name)).resolve()

        # anti path traversal
        base_str = str(self._base)
        abs_str = str(abs_path)
        if not (abs_str == base_str or abs_str.startswith(base_str + os.sep)):
            raise ValueError("Invalid stored_name (path traversal).")

        return abs_path

    def _discard(self, abs_path: Path) -> None:
        try:
            if abs_path.exists():
                abs_path.unlink()
        except OSError:
            logger.warning("Could not remove partial upload %s", abs_path)

    def save(
        self,
        *,
        fileobj: BinaryIO,
        original_name: str,
        content_type: str | None,
        folder: str,
        max_bytes: int | None = None,
    ) -> StoredFile:
        rel_dir = Path(folder)
        abs_dir = self._abs_path_from_stored(rel_dir.as_posix())

        try:
            abs_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ServerError(f"Could not prepare upload folder '{abs_dir}': {e}") from e

        rel_path = (rel_dir / uuid4().hex).as_posix()
        abs_path = self._abs_path_from_stored(rel_path)

        sha = hashlib.sha256()
        size = 0

        try:
            with open(abs_path, "wb") as out:
                while True:
                    chunk = fileobj.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    # ✅ corta no limite, sem gravar o arquivo inteiro
                    if max_bytes is not None and size > max_bytes:
                        raise PayloadTooLargeError(
                            f"File '{original_name}' exceeds the limit of {max_bytes // (1024 * 1024)}MB."
                        )
                    out.write(chunk)
                    sha.update(chunk)
        except PayloadTooLargeError:
            self._discard(abs_path)
            raise
        except OSError as e:
            self._discard(abs_path)
            raise ServerError(f"Could not save file: {e}") from e

        return StoredFile(
            original_name=original_name,
            stored_name=rel_path,
            content_type=content_type,
            size_bytes=size,
            sha256=sha.hexdigest(),
        )

    def delete(self, *, stored_name: str) -> None:
        # best-effort; não quebra fluxo
        try:
            abs_path = self._abs_path_from_stored(stored_name)
        except ValueError:
            return
        if abs_path.is_file():
            self._discard(abs_path)

    def resolve(self, *, stored_name: str) -> Path:
        abs_path = self._abs_path_from_stored(stored_name)
        if not abs_path.is_file():
            raise ValueError("File does not exist.")
        return abs_path

# portal_messaging/infrastructure/storage/file_storage.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol


@dataclass(frozen=True)
class StoredFile:
    original_name: str
    stored_name: str
    content_type: str | None
    size_bytes: int
    sha256: str


class FileStorage(Protocol):
    def save(
        self,
        *,
        fileobj: BinaryIO,
        original_name: str,
        content_type: str | None,
        folder: str,
        max_bytes: int | None = None,
    ) -> StoredFile:
        """Persiste o arquivo e retorna metadados. Estoura PayloadTooLargeError acima de max_bytes."""
        raise NotImplementedError

    def delete(self, *, stored_name: str) -> None:
        """Remove arquivo do storage (best-effort)."""
        raise NotImplementedError

    def resolve(self, *, stored_name: str) -> Path:
        """Caminho absoluto de um arquivo existente; ValueError se inválido."""
        raise NotImplementedError

"""
첨부 파일 저장소 (로컬 디스크)
"""
from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from app.config import settings
from app.certifications.errors import StorageError

logger = logging.getLogger(__name__)


def content_digest(data: bytes, length: int = 16) -> str:
    return hashlib.sha256(data).hexdigest()[:length]


class LocalObjectStore:
    """Stores blobs under ``root``; references are POSIX paths relative to it."""

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root).resolve()

    def path(self, reference: str) -> Path:
        target = (self.root / reference).resolve()
        if self.root not in target.parents:
            raise StorageError(f"reference escapes storage root: {reference}")
        return target

    def put(self, key: str, data: bytes) -> str:
        target = self.path(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"could not write {key}: {exc}") from exc
        logger.info("Stored %s (%d bytes)", key, len(data))
        return target.relative_to(self.root).as_posix()

    def delete(self, reference: str) -> bool:
        """Remove a blob. Already‑absent blobs are a no‑op and return False."""
        target = self.path(reference)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"could not delete {reference}: {exc}") from exc
        logger.info("Deleted %s", reference)
        return True

    def exists(self, reference: str) -> bool:
        return self.path(reference).is_file()


def get_object_store() -> LocalObjectStore:
    """저장소 의존성"""
    return LocalObjectStore(settings.UPLOAD_DIR)

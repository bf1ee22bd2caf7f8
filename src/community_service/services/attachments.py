"""Attachment storage and post attachment records."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from community_service.core.errors import (
    AttachmentNotFoundError,
    StorageError,
    ValidationError,
)
from community_service.core.settings import settings
from community_service.db.session import atomic
from community_service.models import Post, PostAttachment

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads/"
MAX_BASE_NAME_LENGTH = 20


@dataclass(frozen=True)
class AttachmentMetadata:
    """Descriptive data passed to storage alongside the file bytes."""

    original_filename: str
    subdirectory: str = "posts"


class AttachmentStorage(Protocol):
    """Opaque file store; URLs are the only handle the service keeps."""

    def store(self, data: bytes, metadata: AttachmentMetadata) -> str: ...

    def delete(self, url: str) -> None: ...


def _extension(filename: str) -> str:
    stem, dot, ext = filename.rpartition(".")
    if not dot or not stem or not ext:
        return ""
    return ext


class LocalAttachmentStorage:
    """Store files on local disk under date-partitioned directories.

    Files land at ``<base>/<subdirectory>/YYYY/MM/DD/<name>_<stamp>_<id>.<ext>``
    and are served from ``/uploads/<subdirectory>/YYYY/MM/DD/...``.
    """

    def __init__(
        self,
        base_path: str | Path | None = None,
        max_bytes: int | None = None,
        allowed_extensions: list[str] | None = None,
    ) -> None:
        self.base_path = Path(base_path or settings.upload_dir)
        self.max_bytes = max_bytes if max_bytes is not None else settings.upload_max_bytes
        self.allowed_extensions = {
            ext.lower() for ext in (allowed_extensions or settings.upload_allowed_extensions)
        }

    def validate(self, data: bytes, filename: str) -> None:
        """Reject empty, oversized, unnamed, disallowed or path-like files."""
        if not data:
            raise ValidationError("Empty files cannot be uploaded")
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"File exceeds the size limit of {self.max_bytes // (1024 * 1024)}MB"
            )
        if not filename or not filename.strip():
            raise ValidationError("File name is required")
        if ".." in filename or "/" in filename or "\\" in filename:
            raise ValidationError("File name contains forbidden characters")
        if _extension(filename).lower() not in self.allowed_extensions:
            allowed = ", ".join(sorted(self.allowed_extensions))
            raise ValidationError(f"File type not allowed. Allowed types: {allowed}")

    def store(self, data: bytes, metadata: AttachmentMetadata) -> str:
        self.validate(data, metadata.original_filename)
        now = datetime.now()
        date_path = now.strftime("%Y/%m/%d")
        directory = self.base_path / metadata.subdirectory / date_path
        file_name = self._unique_name(metadata.original_filename, now)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            (directory / file_name).write_bytes(data)
        except OSError as exc:
            logger.error("Failed to store %s: %s", metadata.original_filename, exc)
            raise StorageError(f"Could not store file: {exc}") from exc

        url = f"{URL_PREFIX}{metadata.subdirectory}/{date_path}/{file_name}"
        logger.info("Stored %s at %s", metadata.original_filename, url)
        return url

    def delete(self, url: str) -> None:
        relative = url[len(URL_PREFIX):] if url.startswith(URL_PREFIX) else url
        path = self.base_path.joinpath(*PurePosixPath(relative).parts)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Attachment already absent: %s", url)
            return
        except OSError as exc:
            logger.error("Failed to delete %s: %s", url, exc)
            raise StorageError(f"Could not delete file: {exc}") from exc
        logger.info("Deleted attachment %s", url)

    @staticmethod
    def _unique_name(original: str, now: datetime) -> str:
        ext = _extension(original)
        base = original[: -(len(ext) + 1)] if ext else original
        base = base[:MAX_BASE_NAME_LENGTH]
        stamp = now.strftime("%Y%m%d_%H%M%S")
        return f"{base}_{stamp}_{uuid.uuid4().hex[:8]}.{ext}"


class AttachmentService:
    """Persist attachment records for posts."""

    def __init__(self, storage: AttachmentStorage) -> None:
        self.storage = storage

    def upload(
        self,
        db: Session,
        post: Post,
        files: list[tuple[str, bytes]],
    ) -> list[PostAttachment]:
        """Store every file and record it against `post` in one transaction.

        Files already written are removed again if a later one fails.
        """
        if not files:
            raise ValidationError("No files were supplied")

        stored_urls: list[str] = []
        try:
            with atomic(db):
                records = []
                for filename, data in files:
                    url = self.storage.store(data, AttachmentMetadata(original_filename=filename))
                    stored_urls.append(url)
                    record = PostAttachment(
                        post_id=post.id,
                        original_filename=filename,
                        file_name=url.rsplit("/", 1)[-1],
                        file_url=url,
                        file_size=len(data),
                    )
                    db.add(record)
                    records.append(record)
                db.flush()
        except Exception:
            for url in stored_urls:
                self.storage.delete(url)
            raise
        return records

    @staticmethod
    def list_for_post(db: Session, post_id: int) -> list[PostAttachment]:
        return list(
            db.execute(
                select(PostAttachment)
                .where(PostAttachment.post_id == post_id)
                .order_by(PostAttachment.id)
            ).scalars()
        )

    @staticmethod
    def get(db: Session, attachment_id: int) -> PostAttachment:
        attachment = db.get(PostAttachment, attachment_id)
        if attachment is None:
            raise AttachmentNotFoundError()
        return attachment

    def delete_attachment(self, db: Session, attachment: PostAttachment) -> None:
        """Remove one attachment record and its stored file."""
        with atomic(db):
            url = attachment.file_url
            db.delete(attachment)
            db.flush()
            self.storage.delete(url)


__all__ = [
    "AttachmentMetadata",
    "AttachmentService",
    "AttachmentStorage",
    "LocalAttachmentStorage",
]

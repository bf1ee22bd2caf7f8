# tests/services/test_attachments_service.py
"""Tests for local attachment storage and attachment records."""

import re

import pytest
from sqlalchemy import func, select

from community_service.core.errors import AttachmentNotFoundError, ValidationError
from community_service.models import PostAttachment
from community_service.services.attachments import (
    AttachmentMetadata,
    AttachmentService,
    LocalAttachmentStorage,
)


def _path_for(storage: LocalAttachmentStorage, url: str):
    return storage.base_path.joinpath(*url.split("/")[2:])


class TestLocalAttachmentStorage:
    def test_store_writes_dated_file(self, storage) -> None:
        url = storage.store(b"hello", AttachmentMetadata(original_filename="my notes.txt"))

        assert re.fullmatch(
            r"/uploads/posts/\d{4}/\d{2}/\d{2}/my notes_\d{8}_\d{6}_[0-9a-f]{8}\.txt", url
        )
        assert _path_for(storage, url).read_bytes() == b"hello"

    def test_long_names_are_truncated(self, storage) -> None:
        url = storage.store(b"x", AttachmentMetadata(original_filename="a" * 50 + ".txt"))
        assert url.rsplit("/", 1)[-1].startswith("a" * 20 + "_")

    @pytest.mark.parametrize(
        ("data", "filename"),
        [
            (b"", "empty.txt"),
            (b"x" * 2048, "big.txt"),
            (b"x", ""),
            (b"x", "../escape.txt"),
            (b"x", "dir/file.txt"),
            (b"x", "script.exe"),
            (b"x", "noextension"),
        ],
    )
    def test_invalid_files_are_rejected(self, storage, data, filename) -> None:
        with pytest.raises(ValidationError):
            storage.store(data, AttachmentMetadata(original_filename=filename))

    def test_extension_check_ignores_case(self, storage) -> None:
        url = storage.store(b"x", AttachmentMetadata(original_filename="IMAGE.PNG"))
        assert url.endswith(".PNG")

    def test_delete_removes_file(self, storage) -> None:
        url = storage.store(b"x", AttachmentMetadata(original_filename="a.txt"))
        storage.delete(url)
        assert not _path_for(storage, url).exists()

    def test_delete_missing_file_is_tolerated(self, storage) -> None:
        storage.delete("/uploads/posts/2020/01/01/gone.txt")


class TestAttachmentService:
    def test_upload_records_each_file(self, db_session, storage, member_post) -> None:
        service = AttachmentService(storage)
        records = service.upload(
            db_session, member_post, [("a.txt", b"aaa"), ("b.pdf", b"bbbb")]
        )

        assert [r.original_filename for r in records] == ["a.txt", "b.pdf"]
        assert [r.file_size for r in records] == [3, 4]
        assert records[0].formatted_size == "3 B"
        assert [r.id for r in service.list_for_post(db_session, member_post.id)] == [
            r.id for r in records
        ]

    def test_failed_upload_removes_stored_files(self, db_session, storage, member_post) -> None:
        service = AttachmentService(storage)
        with pytest.raises(ValidationError):
            service.upload(db_session, member_post, [("ok.txt", b"ok"), ("bad.exe", b"no")])

        count = db_session.execute(
            select(func.count()).select_from(PostAttachment)
        ).scalar_one()
        assert count == 0
        assert not any(p.is_file() for p in storage.base_path.rglob("*"))

    def test_upload_requires_files(self, db_session, storage, member_post) -> None:
        with pytest.raises(ValidationError):
            AttachmentService(storage).upload(db_session, member_post, [])

    def test_delete_attachment(self, db_session, storage, member_post) -> None:
        service = AttachmentService(storage)
        [record] = service.upload(db_session, member_post, [("a.txt", b"aaa")])
        record_id = record.id
        path = _path_for(storage, record.file_url)

        service.delete_attachment(db_session, record)

        assert not path.exists()
        with pytest.raises(AttachmentNotFoundError):
            service.get(db_session, record_id)


def test_formatted_size_units() -> None:
    assert PostAttachment(file_size=2048).formatted_size == "2.0 KB"
    assert PostAttachment(file_size=3 * 1024 * 1024).formatted_size == "3.0 MB"

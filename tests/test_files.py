"""Tests for upload validation, extraction and file lookups."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from filementor.errors import NotFoundError, UpstreamError, ValidationError
from filementor.services.files import FileService, safe_filename
from tests.fakes import FakeLLM, make_file

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _store(tier="free"):
    store = MagicMock()
    store.get_user_tier = AsyncMock(return_value=tier)
    store.create_file = AsyncMock(side_effect=lambda file: file)
    store.get_file = AsyncMock(return_value=None)
    store.get_by_id = AsyncMock(return_value=None)
    store.touch = AsyncMock()
    store.delete_file = AsyncMock()
    store.mark_processing = AsyncMock()
    store.mark_completed = AsyncMock()
    store.mark_failed = AsyncMock()
    return store


def _storage():
    storage = MagicMock()
    storage.upload_file = AsyncMock(side_effect=lambda user_id, file_id, name, content, ct: f"{user_id}/{file_id}/{name}")
    storage.download_file = AsyncMock()
    storage.delete_file = AsyncMock()
    return storage


class TestUpload:
    @pytest.mark.asyncio
    async def test_stores_row_and_queues_extraction(self):
        store, storage = _store(), _storage()
        usage = MagicMock()
        usage.record_event = AsyncMock(return_value=True)
        enqueue = AsyncMock()
        service = FileService(store, storage, usage=usage, enqueue=enqueue)
        user_id = uuid4()

        file = await service.upload(user_id, "My Report.pdf", b"%PDF-1.4", "application/pdf")

        assert file.original_name == "My Report.pdf"
        assert file.filename == "My_Report.pdf"
        assert file.storage_key == f"{user_id}/{file.id}/My_Report.pdf"
        assert file.processing_status == "pending"
        assert file.file_size == 8
        usage.record_event.assert_awaited_once()
        enqueue.assert_awaited_once_with("process_file", str(file.id))

    @pytest.mark.asyncio
    async def test_extension_fallback_for_generic_type(self):
        service = FileService(_store(), _storage())

        file = await service.upload(uuid4(), "letter.docx", b"PK", "application/octet-stream")

        assert file.file_type == DOCX

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "content", "content_type"),
        [
            ("empty.pdf", b"", "application/pdf"),
            ("photo.png", b"\x89PNG", "image/png"),
            ("archive.zip", b"PK", "application/zip"),
        ],
    )
    async def test_rejected_uploads(self, name, content, content_type):
        storage = _storage()
        service = FileService(_store(), storage)

        with pytest.raises(ValidationError):
            await service.upload(uuid4(), name, content, content_type)
        storage.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_size_limit_follows_tier(self):
        content = b"x" * (11 * 1024 * 1024)

        with pytest.raises(ValidationError) as exc_info:
            await FileService(_store("free"), _storage()).upload(uuid4(), "big.pdf", content, "application/pdf")
        assert exc_info.value.to_dict()["maxFileSizeMb"] == 10

        file = await FileService(_store("pro"), _storage()).upload(uuid4(), "big.pdf", content, "application/pdf")
        assert file.file_size == len(content)

    @pytest.mark.asyncio
    async def test_storage_failure(self):
        storage = _storage()
        storage.upload_file.side_effect = RuntimeError("s3 down")
        store = _store()

        with pytest.raises(UpstreamError):
            await FileService(store, storage).upload(uuid4(), "a.pdf", b"%PDF", "application/pdf")
        store.create_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_queue_failure_marks_file_failed(self):
        store = _store()
        enqueue = AsyncMock(side_effect=ConnectionError("redis down"))

        file = await FileService(store, _storage(), enqueue=enqueue).upload(
            uuid4(), "a.pdf", b"%PDF", "application/pdf"
        )

        store.mark_failed.assert_awaited_once_with(file, "Could not queue file for processing")


class TestProcess:
    @pytest.mark.asyncio
    async def test_extraction_failure_is_recorded(self):
        store, storage = _store(), _storage()
        file = make_file(uuid4(), "broken.pdf")
        store.get_by_id.return_value = file
        storage.download_file.return_value = b"not a pdf"

        result = await FileService(store, storage).process(file.id)

        assert "error" in result
        store.mark_processing.assert_awaited_once_with(file)
        store.mark_failed.assert_awaited_once()
        store.mark_completed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_legacy_file_completes(self):
        store, storage = _store(), _storage()
        file = make_file(uuid4(), "old.ppt", file_type="application/vnd.ms-powerpoint")
        store.get_by_id.return_value = file
        storage.download_file.return_value = b"\xd0\xcf\x11\xe0"

        await FileService(store, storage).process(file.id)

        _, text, metadata = store.mark_completed.call_args.args
        assert metadata == {"type": "presentation", "legacy": True}
        assert ".pptx" in text

    @pytest.mark.asyncio
    async def test_missing_file(self):
        result = await FileService(_store(), _storage()).process(uuid4())
        assert result == {"error": "File not found"}


class TestLookups:
    @pytest.mark.asyncio
    async def test_get_unknown_file(self):
        with pytest.raises(NotFoundError):
            await FileService(_store(), _storage()).get_file(uuid4(), uuid4())

    @pytest.mark.asyncio
    async def test_delete_removes_object_and_row(self):
        store, storage = _store(), _storage()
        file = make_file(uuid4())
        store.get_file.return_value = file

        await FileService(store, storage).delete_file(file.user_id, file.id)

        storage.delete_file.assert_awaited_once_with(file.storage_key)
        store.delete_file.assert_awaited_once_with(file)

    @pytest.mark.asyncio
    async def test_suggestions_for_spreadsheet(self):
        store = _store()
        file = make_file(
            uuid4(),
            "book.xlsx",
            file_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            metadata={"type": "spreadsheet", "sheetCount": 2},
        )
        store.get_file.return_value = file

        suggestions, kind = await FileService(store, _storage()).suggestions(file.user_id, file.id, FakeLLM())

        assert kind == "spreadsheet"
        assert "Compare data across different sheets" in suggestions


def test_safe_filename():
    assert safe_filename("../../etc/passwd") == "passwd"
    assert safe_filename(None) == "unnamed"

"""Tests for the storage uploader."""

import re

import pytest

from referral_service.core.storage_uploader import (
    StorageUploader,
    clean_path_segment,
    generate_file_path,
    is_safe_storage_path,
)
from referral_service.models import CandidateFile


@pytest.mark.unit
class TestGenerateFilePath:

    def test_path_layout_with_case(self):
        path = generate_file_path("vet_1", "my scan.png", case_id="case-9")

        assert re.fullmatch(r"vet_1/case-9/\d{13}_[a-z0-9]{6}_my_scan\.png", path)

    def test_path_layout_without_case(self):
        path = generate_file_path("vet_1", "cbc.png")

        assert re.fullmatch(r"vet_1/\d{13}_[a-z0-9]{6}_cbc\.png", path)

    def test_traversal_cannot_escape_owner_prefix(self):
        path = generate_file_path("vet_1", "../../etc/passwd")

        owner, name = path.split("/")
        assert owner == "vet_1"
        assert name.endswith("_.._.._etc_passwd")

    def test_owner_and_case_are_sanitized(self):
        path = generate_file_path("vet/../other", "x.png", case_id="a b")

        assert path.split("/")[:2] == ["vet_.._other", "a_b"]

    @pytest.mark.parametrize("owner_id,case_id", [
        ("vet_1", ".."),
        ("..", None),
        (".", "."),
        ("...", "case-1"),
    ])
    def test_dot_only_segments_are_replaced(self, owner_id, case_id):
        path = generate_file_path(owner_id, "x.png", case_id=case_id)

        segments = path.split("/")
        assert ".." not in segments
        assert "." not in segments
        assert is_safe_storage_path(path)

    def test_paths_are_unique(self):
        paths = {generate_file_path("vet_1", "same.png") for _ in range(50)}

        assert len(paths) == 50

    def test_clean_path_segment(self):
        assert clean_path_segment("Blood Panel (1).JPG") == "Blood_Panel__1_.JPG"
        assert clean_path_segment("..") == "_"
        assert clean_path_segment("") == "_"

    @pytest.mark.parametrize("path,safe", [
        ("vet_1/1729240000000_abc123_cbc.png", True),
        ("vet_1/case-1/a..b.png", True),
        ("vet_1/../vet_2/x.png", False),
        ("vet_1/./x.png", False),
        ("vet_1//x.png", False),
        ("../x.png", False),
        ("", False),
    ])
    def test_is_safe_storage_path(self, path, safe):
        assert is_safe_storage_path(path) is safe


@pytest.mark.unit
class TestUploadFile:

    @pytest.mark.asyncio
    async def test_upload_success(self, uploader, object_store):
        file = CandidateFile.from_bytes("cbc.png", "image/png", b"\x89PNG data")

        result = await uploader.upload_file(file, "blood-tests", "vet_1")

        assert result.success is True
        assert result.file_name == "cbc.png"
        assert result.file_size == len(b"\x89PNG data")
        assert result.content_type == "image/png"
        assert result.file_url == f"memory://storage/blood-tests/{result.storage_path}"
        assert object_store.objects[("blood-tests", result.storage_path)] == b"\x89PNG data"

    @pytest.mark.asyncio
    async def test_missing_owner_is_rejected(self, uploader, object_store):
        file = CandidateFile.from_bytes("cbc.png", "image/png", b"x")

        result = await uploader.upload_file(file, "blood-tests", "")

        assert result.success is False
        assert result.error == "Invalid parameters: userId=, fileName=cbc.png, bucket=blood-tests"
        assert object_store.objects == {}

    @pytest.mark.asyncio
    async def test_store_error_becomes_failed_result(self, flaky_object_store):
        uploader = StorageUploader(flaky_object_store("broken"))
        file = CandidateFile.from_bytes("broken.png", "image/png", b"x")

        result = await uploader.upload_file(file, "blood-tests", "vet_1")

        assert result.success is False
        assert result.error == "Upload failed: connection reset by peer"
        assert result.file_url is None


@pytest.mark.unit
class TestUploadMultipleFiles:

    @pytest.mark.asyncio
    async def test_partial_failures_keep_order_and_count(self, flaky_object_store):
        store = flaky_object_store("bad")
        uploader = StorageUploader(store)
        names = ["a.png", "bad1.png", "b.png", "bad2.png", "c.png"]
        files = [CandidateFile.from_bytes(n, "image/png", b"data") for n in names]
        progress = []

        results = await uploader.upload_multiple_files(
            files,
            "blood-tests",
            "vet_1",
            on_progress=lambda done, total: progress.append((done, total)),
        )

        assert [r.file_name for r in results] == names
        assert [r.success for r in results] == [True, False, True, False, True]
        assert progress == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]
        assert len(store.objects) == 3

    @pytest.mark.asyncio
    async def test_empty_batch(self, uploader):
        progress = []

        results = await uploader.upload_multiple_files(
            [], "blood-tests", "vet_1", on_progress=lambda *args: progress.append(args)
        )

        assert results == []
        assert progress == []

    @pytest.mark.asyncio
    async def test_case_id_is_part_of_every_path(self, uploader):
        files = [CandidateFile.from_bytes(f"{i}.pdf", "application/pdf", b"%PDF") for i in range(3)]

        results = await uploader.upload_multiple_files(
            files, "medical-records", "vet_1", case_id="case-7"
        )

        assert all(r.storage_path.startswith("vet_1/case-7/") for r in results)


@pytest.mark.unit
class TestDeleteAndSign:

    @pytest.mark.asyncio
    async def test_delete_existing_object(self, uploader, object_store):
        file = CandidateFile.from_bytes("cbc.png", "image/png", b"x")
        uploaded = await uploader.upload_file(file, "blood-tests", "vet_1")

        result = await uploader.delete_file("blood-tests", uploaded.storage_path)

        assert result.success is True
        assert object_store.objects == {}

    @pytest.mark.asyncio
    async def test_delete_missing_object_fails(self, uploader):
        result = await uploader.delete_file("blood-tests", "vet_1/nothing.png")

        assert result.success is False
        assert result.error.startswith("Delete failed:")

    @pytest.mark.asyncio
    async def test_delete_refuses_traversal(self, uploader, object_store):
        object_store.put_object("blood-tests", "vet_2/x.png", b"x")

        result = await uploader.delete_file("blood-tests", "vet_1/../vet_2/x.png")

        assert result.success is False
        assert result.error == "Invalid storage path: vet_1/../vet_2/x.png"
        assert ("blood-tests", "vet_2/x.png") in object_store.objects

    @pytest.mark.asyncio
    async def test_signed_url_carries_ttl(self, uploader):
        file = CandidateFile.from_bytes("cbc.png", "image/png", b"x")
        uploaded = await uploader.upload_file(file, "blood-tests", "vet_1")

        url = await uploader.signed_url("blood-tests", uploaded.storage_path, ttl=60)

        assert url.endswith("?expires_in=60")

    @pytest.mark.asyncio
    async def test_signed_url_for_missing_object_is_none(self, uploader):
        assert await uploader.signed_url("blood-tests", "vet_1/gone.png") is None

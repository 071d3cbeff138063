"""Tests for multipart upload helpers."""

import math
from unittest.mock import MagicMock

import pytest
from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig

from s3facade.common.result import ErrorKind
from s3facade.infra.storage.client import UploadPart
from s3facade.infra.storage.multipart import (
    PART_SIZE,
    MultipartUploader,
    TransferUploader,
    plan_parts,
)
from tests.conftest import FIXED_TOKEN
from tests.services.fake_s3 import FakeS3Client

EXPECTED_KEY = f"/uploads/2024/03/07/{FIXED_TOKEN}-data.bin"


class TestPlanParts:
    @pytest.mark.parametrize(
        "size",
        [1, PART_SIZE - 1, PART_SIZE, PART_SIZE + 1, 3 * PART_SIZE, 12 * 1024 * 1024 + 3],
    )
    def test_part_count_and_last_part_size(self, size):
        parts = list(plan_parts(size))
        expected_count = math.ceil(size / PART_SIZE)

        assert len(parts) == expected_count
        assert [p.part_number for p in parts] == list(range(1, expected_count + 1))
        assert parts[-1].part_size == size - PART_SIZE * (expected_count - 1)
        assert sum(p.part_size for p in parts) == size

    def test_offsets_are_contiguous(self):
        parts = list(plan_parts(11, part_size=4))

        assert parts == [
            UploadPart(part_number=1, file_offset=0, part_size=4),
            UploadPart(part_number=2, file_offset=4, part_size=4),
            UploadPart(part_number=3, file_offset=8, part_size=3),
        ]

    def test_empty_content_has_no_parts(self):
        assert list(plan_parts(0)) == []

    def test_rejects_non_positive_part_size(self):
        with pytest.raises(ValueError):
            list(plan_parts(10, part_size=0))


class TestMultipartUploader:
    @pytest.fixture
    def source(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abcdefghij")
        return path

    def test_uploads_parts_in_order_and_completes(self, source, key_namer):
        fake = FakeS3Client()
        uploader = MultipartUploader(fake, key_namer=key_namer, part_size=4)

        result = uploader.upload("bucket", source)

        assert result.ok
        assert result.value == EXPECTED_KEY
        assert fake.calls == [
            "create_multipart_upload",
            "upload_part:1",
            "upload_part:2",
            "upload_part:3",
            "complete_multipart_upload",
        ]
        assert fake.objects[f"bucket/{EXPECTED_KEY}"] == b"abcdefghij"

    def test_uses_base_dir(self, source, key_namer):
        fake = FakeS3Client()
        uploader = MultipartUploader(fake, key_namer=key_namer, part_size=4)

        result = uploader.upload("bucket", source, "videos")

        assert result.value == f"/videos/2024/03/07/{FIXED_TOKEN}-data.bin"

    def test_part_failure_reports_backend_error_without_abort(self, source, key_namer):
        fake = FakeS3Client(fail_on_part=2)
        uploader = MultipartUploader(fake, key_namer=key_namer, part_size=4)

        result = uploader.upload("bucket", source)

        assert not result.ok
        assert result.kind is ErrorKind.BACKEND
        assert "abort_multipart_upload" not in fake.calls
        assert "complete_multipart_upload" not in fake.calls
        assert fake.objects == {}

    def test_part_failure_aborts_when_requested(self, source, key_namer):
        fake = FakeS3Client(fail_on_part=2)
        uploader = MultipartUploader(
            fake, key_namer=key_namer, part_size=4, abort_on_failure=True
        )

        result = uploader.upload("bucket", source)

        assert not result.ok
        assert fake.calls[-1] == "abort_multipart_upload"
        assert fake.uploads["fake-upload-1"]["aborted"] is True

    def test_path_without_file_name_is_invalid(self, key_namer):
        client = MagicMock()
        uploader = MultipartUploader(client, key_namer=key_namer)

        result = uploader.upload("bucket", "/")

        assert result.kind is ErrorKind.VALIDATION
        client.create_multipart_upload.assert_not_called()

    def test_missing_upload_id(self, source, key_namer):
        client = MagicMock()
        client.create_multipart_upload.return_value = {}
        uploader = MultipartUploader(client, key_namer=key_namer)

        result = uploader.upload("bucket", source)

        assert result.kind is ErrorKind.BACKEND
        assert "missing UploadId" in result.error.message
        client.upload_part.assert_not_called()

    def test_missing_file(self, tmp_path, key_namer):
        client = MagicMock()
        client.create_multipart_upload.return_value = {"UploadId": "u-1"}
        uploader = MultipartUploader(client, key_namer=key_namer)

        result = uploader.upload("bucket", tmp_path / "missing.bin")

        assert result.kind is ErrorKind.BACKEND
        client.complete_multipart_upload.assert_not_called()

    def test_default_part_size_sends_five_mib_parts(self, tmp_path, key_namer):
        path = tmp_path / "data.bin"
        size = PART_SIZE + 10
        path.write_bytes(b"x" * size)
        fake = FakeS3Client()
        uploader = MultipartUploader(fake, key_namer=key_namer)

        result = uploader.upload("bucket", path)

        assert result.ok
        parts = fake.uploads["fake-upload-1"]["parts"]
        assert len(parts[1]) == PART_SIZE
        assert len(parts[2]) == 10


class TestTransferUploader:
    def test_hands_file_to_managed_transfer(self, tmp_path, key_namer):
        path = tmp_path / "data.bin"
        path.write_bytes(b"payload")
        client = MagicMock()
        config = TransferConfig(multipart_chunksize=PART_SIZE)
        uploader = TransferUploader(client, key_namer=key_namer, transfer_config=config)

        result = uploader.upload("bucket", path)

        assert result.ok
        assert result.value == EXPECTED_KEY
        client.upload_file.assert_called_once_with(
            Filename=str(path), Bucket="bucket", Key=EXPECTED_KEY, Config=config
        )

    def test_path_without_file_name_is_invalid(self, key_namer):
        client = MagicMock()
        uploader = TransferUploader(client, key_namer=key_namer)

        result = uploader.upload("bucket", ".")

        assert result.kind is ErrorKind.VALIDATION
        client.upload_file.assert_not_called()

    def test_transfer_failure(self, tmp_path, key_namer):
        path = tmp_path / "data.bin"
        path.write_bytes(b"payload")
        client = MagicMock()
        client.upload_file.side_effect = S3UploadFailedError("boom")
        uploader = TransferUploader(client, key_namer=key_namer)

        result = uploader.upload("bucket", path)

        assert not result.ok
        assert result.kind is ErrorKind.BACKEND

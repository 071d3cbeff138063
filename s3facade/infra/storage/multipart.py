"""File uploads split into multipart upload parts.

Two paths are offered. :class:`MultipartUploader` drives the multipart
protocol by hand, one part at a time. :class:`TransferUploader` hands the
file to boto3's managed transfer and waits for it; part concurrency and
retries are then the SDK's business.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterator

from boto3.exceptions import Boto3Error
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from s3facade.common.result import Result
from s3facade.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    StorageError,
    UploadPart,
)
from s3facade.infra.storage.naming import KeyNamer

logger = logging.getLogger(__name__)

# 5 MiB is also the smallest part S3 accepts for every part but the last.
PART_SIZE = 5 * 1024 * 1024

UPLOAD_ERRORS = (BotoCoreError, ClientError, Boto3Error, StorageError, OSError)


def plan_parts(content_length: int, part_size: int = PART_SIZE) -> Iterator[UploadPart]:
    """Yield the parts covering ``content_length`` bytes in file order."""
    if part_size <= 0:
        raise ValueError("part_size must be positive")
    if content_length < 0:
        raise ValueError("content_length must not be negative")
    offset = 0
    part_number = 1
    while offset < content_length:
        size = min(part_size, content_length - offset)
        yield UploadPart(part_number=part_number, file_offset=offset, part_size=size)
        offset += size
        part_number += 1


class MultipartUploader:
    """Sequential low-level multipart upload of a local file.

    Parts are sent strictly one after another. When something fails the
    open upload is left on the backend unless ``abort_on_failure`` is set.
    """

    def __init__(
        self,
        client: Any,
        *,
        key_namer: KeyNamer | None = None,
        part_size: int = PART_SIZE,
        abort_on_failure: bool = False,
    ) -> None:
        if part_size <= 0:
            raise ValueError("part_size must be positive")
        self._client = client
        self._key_namer = key_namer or KeyNamer()
        self._part_size = part_size
        self._abort_on_failure = abort_on_failure

    def upload(
        self,
        bucket: str,
        path: str | os.PathLike[str],
        base_dir: str | None = None,
    ) -> Result[str]:
        """Upload ``path`` to ``bucket`` and return the generated object key."""
        file_path = Path(path)
        if not file_path.name:
            return Result.invalid(f"file path {path} has no file name")
        object_key = self._key_namer.build(file_path.name, base_dir)
        session: MultipartUpload | None = None
        try:
            session = self._initiate(bucket, object_key)
            content_length = file_path.stat().st_size
            parts = self._upload_parts(session, file_path, content_length)
            self._complete(session, parts)
        except UPLOAD_ERRORS as exc:
            logger.error(
                "multipart_upload_failed bucket=%s object=%s upload_id=%s",
                bucket,
                object_key,
                session.upload_id if session else "-",
                exc_info=True,
            )
            if session is not None and self._abort_on_failure:
                self._abort(session)
            return Result.backend_error(
                f"Multipart upload of {file_path.name} failed: {exc}", exc
            )

        logger.info(
            "multipart_upload_succeeded bucket=%s object=%s parts=%d",
            bucket,
            object_key,
            len(parts),
        )
        return Result.success(object_key)

    def _initiate(self, bucket: str, object_key: str) -> MultipartUpload:
        response = self._client.create_multipart_upload(Bucket=bucket, Key=object_key)
        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")
        return MultipartUpload(
            upload_id=str(upload_id), bucket=bucket, object_key=object_key
        )

    def _upload_parts(
        self, session: MultipartUpload, file_path: Path, content_length: int
    ) -> list[CompletedPart]:
        completed: list[CompletedPart] = []
        with file_path.open("rb") as handle:
            for part in plan_parts(content_length, self._part_size):
                handle.seek(part.file_offset)
                body = handle.read(part.part_size)
                response = self._client.upload_part(
                    Bucket=session.bucket,
                    Key=session.object_key,
                    UploadId=session.upload_id,
                    PartNumber=part.part_number,
                    ContentLength=part.part_size,
                    Body=body,
                )
                etag = response.get("ETag")
                if not etag:
                    raise StorageError(
                        f"S3 response missing ETag for part {part.part_number}"
                    )
                completed.append(CompletedPart(part_number=part.part_number, etag=etag))
                logger.debug(
                    "multipart_part_uploaded upload_id=%s part=%d offset=%d size=%d",
                    session.upload_id,
                    part.part_number,
                    part.file_offset,
                    part.part_size,
                )
        return completed

    def _complete(self, session: MultipartUpload, parts: list[CompletedPart]) -> None:
        self._client.complete_multipart_upload(
            Bucket=session.bucket,
            Key=session.object_key,
            UploadId=session.upload_id,
            MultipartUpload={
                "Parts": [
                    {"ETag": part.etag, "PartNumber": int(part.part_number)}
                    for part in parts
                ]
            },
        )

    def _abort(self, session: MultipartUpload) -> None:
        try:
            self._client.abort_multipart_upload(
                Bucket=session.bucket,
                Key=session.object_key,
                UploadId=session.upload_id,
            )
        except (BotoCoreError, ClientError):
            logger.warning(
                "multipart_abort_failed bucket=%s object=%s upload_id=%s",
                session.bucket,
                session.object_key,
                session.upload_id,
                exc_info=True,
            )
        else:
            logger.info(
                "multipart_upload_aborted bucket=%s object=%s upload_id=%s",
                session.bucket,
                session.object_key,
                session.upload_id,
            )


def default_transfer_config(part_size: int = PART_SIZE) -> TransferConfig:
    return TransferConfig(multipart_threshold=part_size, multipart_chunksize=part_size)


class TransferUploader:
    """Upload through boto3's managed transfer, blocking until it is done."""

    def __init__(
        self,
        client: Any,
        *,
        key_namer: KeyNamer | None = None,
        transfer_config: TransferConfig | None = None,
    ) -> None:
        self._client = client
        self._key_namer = key_namer or KeyNamer()
        self._transfer_config = transfer_config or default_transfer_config()

    def upload(
        self,
        bucket: str,
        path: str | os.PathLike[str],
        base_dir: str | None = None,
    ) -> Result[str]:
        file_path = Path(path)
        if not file_path.name:
            return Result.invalid(f"file path {path} has no file name")
        object_key = self._key_namer.build(file_path.name, base_dir)
        logger.info("transfer_upload_started bucket=%s object=%s", bucket, object_key)
        try:
            self._client.upload_file(
                Filename=str(file_path),
                Bucket=bucket,
                Key=object_key,
                Config=self._transfer_config,
            )
        except UPLOAD_ERRORS as exc:
            logger.error(
                "transfer_upload_failed bucket=%s object=%s",
                bucket,
                object_key,
                exc_info=True,
            )
            return Result.backend_error(
                f"Transfer upload of {file_path.name} failed: {exc}", exc
            )
        logger.info("transfer_upload_succeeded bucket=%s object=%s", bucket, object_key)
        return Result.success(object_key)

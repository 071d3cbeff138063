"""Storage data types shared by the facade and the upload helpers.

Bucket and object payloads coming back from boto3 are passed through as
plain dictionaries; only the values the facade itself builds or consumes
get a dedicated type here.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class HttpMethod(str, enum.Enum):
    """HTTP verb a presigned URL is bound to."""

    GET = "GET"
    PUT = "PUT"

    @property
    def client_method(self) -> str:
        """boto3 operation name used when signing for this verb."""
        return "get_object" if self is HttpMethod.GET else "put_object"


@dataclass(frozen=True, slots=True)
class UploadPart:
    """Byte range of a file sent as one multipart upload part."""

    part_number: int
    file_offset: int
    part_size: int

    def __post_init__(self) -> None:
        if self.part_number < 1:
            raise ValueError("part_number starts at 1")
        if self.file_offset < 0:
            raise ValueError("file_offset must not be negative")
        if self.part_size <= 0:
            raise ValueError("part_size must be positive")


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None

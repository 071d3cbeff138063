"""Object storage layer.

Types shared by the facade, the boto3 client factory, key naming and the
multipart upload helpers.
"""

from .client import (
    CompletedPart,
    HttpMethod,
    MultipartUpload,
    ObjectHead,
    StorageError,
    UploadPart,
)

__all__ = [
    "CompletedPart",
    "HttpMethod",
    "MultipartUpload",
    "ObjectHead",
    "StorageError",
    "UploadPart",
]

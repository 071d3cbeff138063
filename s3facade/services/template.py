"""Storage facade over a boto3 S3 client.

``S3Template`` exposes the bucket and object operations an application
needs with three guarantees added on top of boto3:

* required string arguments are checked up front and an empty or missing
  one yields a ``VALIDATION`` failure without touching the backend;
* bucket names are lowercased before every bucket-referencing call,
  since S3 rejects uppercase bucket names;
* backend exceptions are logged and returned as ``BACKEND`` failures.

Copying an object onto itself is the only operation that raises
(:class:`ContractViolationError`).
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Generator, Iterable, Sequence
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from s3facade.common.config import Settings
from s3facade.common.result import ContractViolationError, ErrorKind, Result
from s3facade.infra.observability.metrics import STORAGE_LATENCY, STORAGE_OPERATIONS
from s3facade.infra.storage.client import HttpMethod, ObjectHead
from s3facade.infra.storage.multipart import (
    PART_SIZE,
    MultipartUploader,
    TransferUploader,
    default_transfer_config,
)
from s3facade.infra.storage.naming import KeyNamer
from s3facade.infra.storage.s3_client import build_s3_client

logger = logging.getLogger(__name__)

BACKEND_ERRORS = (BotoCoreError, ClientError)

VERSIONING_ENABLED = "Enabled"
US_EAST_1 = "us-east-1"
MISSING_CONFIGURATION_CODES = frozenset(
    {
        "NoSuchCORSConfiguration",
        "NoSuchBucketPolicy",
        "NoSuchLifecycleConfiguration",
    }
)
NOT_FOUND_CODES = frozenset({"404", "NoSuchBucket", "NoSuchKey", "NotFound"})

DEFAULT_CORS_METHODS: tuple[str, ...] = ("GET", "PUT", "POST", "DELETE", "HEAD")

ObjectRef = str | tuple[str, str | None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def _is_empty(*args: str | None) -> bool:
    if not args:
        return True
    return any(not arg for arg in args)


def _as_duration(expires: timedelta | int | float) -> timedelta:
    if isinstance(expires, timedelta):
        return expires
    return timedelta(seconds=expires)


@dataclass(frozen=True, slots=True)
class PresignedUrl:
    """A signed URL together with the verb and instant it is valid for."""

    url: str
    method: HttpMethod
    expires_at: datetime


class S3Template:
    """Facade of bucket and object operations on one S3 client."""

    def __init__(
        self,
        settings: Settings,
        client: Any | None = None,
        *,
        key_namer: KeyNamer | None = None,
        clock: Callable[[], datetime] | None = None,
        part_size: int = PART_SIZE,
        abort_on_failure: bool = False,
    ) -> None:
        self._settings = settings
        self._client = client if client is not None else build_s3_client(settings)
        self._clock = clock or _utcnow
        self._key_namer = key_namer or KeyNamer(
            default_base_dir=settings.S3_UPLOAD_BASE_DIR
        )
        self._multipart = MultipartUploader(
            self._client,
            key_namer=self._key_namer,
            part_size=part_size,
            abort_on_failure=abort_on_failure,
        )
        self._transfer = TransferUploader(
            self._client,
            key_namer=self._key_namer,
            transfer_config=default_transfer_config(part_size),
        )

    @property
    def client(self) -> Any:
        """The underlying boto3 client, for operations the facade does not cover."""
        return self._client

    @property
    def settings(self) -> Settings:
        return self._settings

    def default_bucket_name(self) -> str | None:
        return self._settings.S3_BUCKET

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def normalize_bucket(bucket: str | None) -> str | None:
        if not bucket:
            return bucket
        return bucket.lower()

    @contextmanager
    def _observe(self, operation: str) -> Generator[None, None, None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            STORAGE_LATENCY.labels(operation).observe(time.perf_counter() - start)

    @staticmethod
    def _record(operation: str, result: Result[Any]) -> Result[Any]:
        if result.error is not None:
            outcome = result.error.kind.value
        elif result.value is None:
            outcome = "empty"
        else:
            outcome = "success"
        STORAGE_OPERATIONS.labels(operation, outcome).inc()
        return result

    @staticmethod
    def _record_flag(operation: str, succeeded: bool) -> bool:
        outcome = "success" if succeeded else ErrorKind.BACKEND.value
        STORAGE_OPERATIONS.labels(operation, outcome).inc()
        return succeeded

    @staticmethod
    def _invalid(operation: str, message: str) -> Result[Any]:
        logger.warning("%s skipped: %s", operation, message)
        STORAGE_OPERATIONS.labels(operation, ErrorKind.VALIDATION.value).inc()
        return Result.invalid(message)

    def resolve_prefix(self, prefix: str | None) -> str | None:
        """Confine a listing prefix to ``S3_BASE_PATH`` when one is configured."""
        base = (self._settings.S3_BASE_PATH or "").rstrip("/")
        if not base:
            return prefix or None
        if not prefix:
            return base + "/"
        if prefix == base or prefix.startswith(base + "/"):
            return prefix
        return f"{base}/{prefix.lstrip('/')}"

    # ------------------------------------------------------------------ buckets

    def initialize(self) -> Result[dict[str, Any]]:
        """Create the default bucket and apply the CORS rule when configured."""
        bucket = self.default_bucket_name()
        if not bucket:
            logger.info("No default bucket configured, skipping bucket setup")
            return Result.empty()

        result: Result[dict[str, Any]] = Result.empty()
        if self._settings.S3_CREATE_BUCKET_ON_STARTUP:
            result = self.create_bucket(bucket)
        if self._settings.S3_AUTO_CONFIG_CORS:
            self.set_bucket_cors(bucket, [self.default_cors_rule()])
        return result

    def default_cors_rule(self) -> dict[str, Any]:
        return {
            "AllowedOrigins": list(self._settings.S3_CORS_ORIGINS or ["*"]),
            "AllowedMethods": list(DEFAULT_CORS_METHODS),
            "AllowedHeaders": ["*"],
            "ExposeHeaders": ["ETag"],
            "MaxAgeSeconds": 3600,
        }

    def bucket_exists(self, bucket: str | None) -> bool:
        if not bucket:
            logger.warning("bucket_exists skipped: bucket name is empty")
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("bucket_exists"):
                self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if _error_code(exc) not in NOT_FOUND_CODES:
                logger.error("bucket_exists failed bucket=%s", bucket, exc_info=True)
            return False
        except BotoCoreError:
            logger.error("bucket_exists failed bucket=%s", bucket, exc_info=True)
            return False
        return True

    def create_bucket(self, bucket: str | None) -> Result[dict[str, Any]]:
        """Create ``bucket``, or return it unchanged when it already exists."""
        if not bucket:
            return self._invalid("create_bucket", "bucket name is empty")

        bucket = self.normalize_bucket(bucket)
        if self.bucket_exists(bucket):
            logger.info("Bucket %s already exists", bucket)
            return self.get_bucket(bucket)

        params: dict[str, Any] = {"Bucket": bucket}
        region = self._settings.S3_REGION
        if region and region != US_EAST_1:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            with self._observe("create_bucket"):
                self._client.create_bucket(**params)
                location = self._client.get_bucket_location(Bucket=bucket).get(
                    "LocationConstraint"
                )
        except BACKEND_ERRORS as exc:
            logger.error("create bucket %s failed", bucket, exc_info=True)
            return self._record(
                "create_bucket",
                Result.backend_error(f"Failed to create bucket {bucket}: {exc}", exc),
            )

        logger.info("create bucket %s success, location %s", bucket, location)
        return self._record(
            "create_bucket", Result.success({"Name": bucket, "Location": location})
        )

    def get_bucket(self, bucket: str | None) -> Result[dict[str, Any]]:
        if not bucket:
            return self._invalid("get_bucket", "bucket name is empty")

        bucket = self.normalize_bucket(bucket)
        buckets = self.list_buckets()
        if not buckets.ok:
            return buckets  # type: ignore[return-value]
        for candidate in buckets.value_or([]):
            if candidate.get("Name") == bucket:
                return Result.success(candidate)
        logger.info("Bucket %s not found", bucket)
        return Result.empty()

    def list_buckets(self) -> Result[list[dict[str, Any]]]:
        try:
            with self._observe("list_buckets"):
                response = self._client.list_buckets()
        except BACKEND_ERRORS as exc:
            logger.error("list buckets failed", exc_info=True)
            return self._record(
                "list_buckets",
                Result.backend_error(f"Failed to list buckets: {exc}", exc),
            )
        return self._record("list_buckets", Result.success(response.get("Buckets", [])))

    def delete_bucket(self, bucket: str | None) -> bool:
        """Empty ``bucket`` (objects, versions and delete markers) and delete it."""
        if not bucket:
            self._invalid("delete_bucket", "bucket name is empty")
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("delete_bucket"):
                self._purge_objects(bucket)
                self._purge_versions(bucket)
                self._client.delete_bucket(Bucket=bucket)
        except BACKEND_ERRORS:
            logger.error("delete bucket %s failed", bucket, exc_info=True)
            return self._record_flag("delete_bucket", False)

        logger.info("delete bucket %s success", bucket)
        return self._record_flag("delete_bucket", True)

    def _purge_objects(self, bucket: str) -> None:
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket):
            objects = [{"Key": item["Key"]} for item in page.get("Contents", [])]
            if objects:
                self._client.delete_objects(
                    Bucket=bucket, Delete={"Objects": objects, "Quiet": True}
                )

    def _purge_versions(self, bucket: str) -> None:
        paginator = self._client.get_paginator("list_object_versions")
        for page in paginator.paginate(Bucket=bucket):
            entries = page.get("Versions", []) + page.get("DeleteMarkers", [])
            objects = [
                {"Key": entry["Key"], "VersionId": entry["VersionId"]}
                for entry in entries
            ]
            if objects:
                self._client.delete_objects(
                    Bucket=bucket, Delete={"Objects": objects, "Quiet": True}
                )

    def set_bucket_cors(
        self, bucket: str | None, rules: Sequence[dict[str, Any]] | None
    ) -> bool:
        if not bucket or not rules:
            self._invalid("set_bucket_cors", "bucket name and CORS rules are required")
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("set_bucket_cors"):
                self._client.put_bucket_cors(
                    Bucket=bucket, CORSConfiguration={"CORSRules": list(rules)}
                )
        except BACKEND_ERRORS:
            logger.error("config bucket %s cors failed", bucket, exc_info=True)
            return self._record_flag("set_bucket_cors", False)
        logger.info("config bucket %s cors success", bucket)
        return self._record_flag("set_bucket_cors", True)

    def delete_bucket_cors(self, bucket: str | None) -> bool:
        if not bucket:
            self._invalid("delete_bucket_cors", "bucket name is empty")
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("delete_bucket_cors"):
                self._client.delete_bucket_cors(Bucket=bucket)
        except BACKEND_ERRORS:
            logger.error("delete bucket %s cors failed", bucket, exc_info=True)
            return self._record_flag("delete_bucket_cors", False)
        logger.info("delete bucket %s cors success", bucket)
        return self._record_flag("delete_bucket_cors", True)

    def get_bucket_cors(self, bucket: str | None) -> Result[list[dict[str, Any]]]:
        if not bucket:
            return self._invalid("get_bucket_cors", "bucket name is empty")

        bucket = self.normalize_bucket(bucket)
        return self._get_bucket_configuration(
            "get_bucket_cors",
            bucket,
            lambda: self._client.get_bucket_cors(Bucket=bucket).get("CORSRules"),
        )

    def get_bucket_policy(self, bucket: str | None) -> Result[str]:
        if not bucket:
            return self._invalid("get_bucket_policy", "bucket name is empty")

        bucket = self.normalize_bucket(bucket)
        return self._get_bucket_configuration(
            "get_bucket_policy",
            bucket,
            lambda: self._client.get_bucket_policy(Bucket=bucket).get("Policy"),
        )

    def delete_bucket_policy(self, bucket: str | None) -> bool:
        if not bucket:
            self._invalid("delete_bucket_policy", "bucket name is empty")
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("delete_bucket_policy"):
                self._client.delete_bucket_policy(Bucket=bucket)
        except BACKEND_ERRORS:
            logger.error("delete bucket %s policy failed", bucket, exc_info=True)
            return self._record_flag("delete_bucket_policy", False)
        return self._record_flag("delete_bucket_policy", True)

    def set_bucket_lifecycle(
        self, bucket: str | None, rules: Sequence[dict[str, Any]] | None
    ) -> bool:
        if not bucket or not rules:
            self._invalid(
                "set_bucket_lifecycle", "bucket name and lifecycle rules are required"
            )
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("set_bucket_lifecycle"):
                self._client.put_bucket_lifecycle_configuration(
                    Bucket=bucket, LifecycleConfiguration={"Rules": list(rules)}
                )
        except BACKEND_ERRORS:
            logger.error("set bucket %s lifecycle failed", bucket, exc_info=True)
            return self._record_flag("set_bucket_lifecycle", False)
        logger.info("set bucket %s lifecycle success", bucket)
        return self._record_flag("set_bucket_lifecycle", True)

    def get_bucket_lifecycle(self, bucket: str | None) -> Result[list[dict[str, Any]]]:
        if not bucket:
            return self._invalid("get_bucket_lifecycle", "bucket name is empty")

        bucket = self.normalize_bucket(bucket)
        return self._get_bucket_configuration(
            "get_bucket_lifecycle",
            bucket,
            lambda: self._client.get_bucket_lifecycle_configuration(Bucket=bucket).get(
                "Rules"
            ),
        )

    def _get_bucket_configuration(
        self, operation: str, bucket: str, fetch: Callable[[], Any]
    ) -> Result[Any]:
        try:
            with self._observe(operation):
                value = fetch()
        except ClientError as exc:
            if _error_code(exc) in MISSING_CONFIGURATION_CODES:
                logger.info(
                    "%s: bucket %s has no such configuration", operation, bucket
                )
                return self._record(operation, Result.empty())
            logger.error("%s failed bucket=%s", operation, bucket, exc_info=True)
            return self._record(
                operation, Result.backend_error(f"{operation} failed: {exc}", exc)
            )
        except BotoCoreError as exc:
            logger.error("%s failed bucket=%s", operation, bucket, exc_info=True)
            return self._record(
                operation, Result.backend_error(f"{operation} failed: {exc}", exc)
            )
        return self._record(operation, Result.success(value))

    # ------------------------------------------------------------------ listing

    def list_objects(
        self, bucket: str | None, prefix: str | None = None
    ) -> Result[dict[str, Any]]:
        return self._list("list_objects", bucket, prefix)

    def list_objects_v2(
        self, bucket: str | None, prefix: str | None = None
    ) -> Result[dict[str, Any]]:
        return self._list("list_objects_v2", bucket, prefix)

    def _list(
        self, operation: str, bucket: str | None, prefix: str | None
    ) -> Result[dict[str, Any]]:
        if not bucket:
            return self._invalid(operation, "bucket name is empty")

        bucket = self.normalize_bucket(bucket)
        params: dict[str, Any] = {"Bucket": bucket}
        resolved = self.resolve_prefix(prefix)
        if resolved:
            params["Prefix"] = resolved

        try:
            with self._observe(operation):
                response = getattr(self._client, operation)(**params)
        except BACKEND_ERRORS as exc:
            logger.error(
                "get bucket %s, prefix %s, object list failed",
                bucket,
                resolved,
                exc_info=True,
            )
            return self._record(
                operation, Result.backend_error(f"Failed to list objects: {exc}", exc)
            )
        return self._record(operation, Result.success(response))

    def get_object_info(
        self, bucket: str | None, max_keys: int = 0
    ) -> Result[list[dict[str, Any]]]:
        """Collect every object summary of ``bucket``, page by page."""
        if not bucket:
            return self._invalid("get_object_info", "bucket name is empty")

        bucket = self.normalize_bucket(bucket)
        params: dict[str, Any] = {"Bucket": bucket}
        if max_keys > 0:
            params["MaxKeys"] = max_keys
        prefix = self.resolve_prefix(None)
        if prefix:
            params["Prefix"] = prefix

        summaries: list[dict[str, Any]] = []
        try:
            with self._observe("get_object_info"):
                while True:
                    response = self._client.list_objects_v2(**params)
                    summaries.extend(response.get("Contents", []))
                    token = response.get("NextContinuationToken")
                    logger.debug("Next continuation token: %s", token)
                    if not response.get("IsTruncated") or not token:
                        break
                    params["ContinuationToken"] = token
        except BACKEND_ERRORS as exc:
            logger.warning(
                "bucket %s, max_keys %s, get object info failed",
                bucket,
                max_keys,
                exc_info=True,
            )
            return self._record(
                "get_object_info",
                Result.backend_error(f"Failed to list objects: {exc}", exc),
            )
        return self._record("get_object_info", Result.success(summaries))

    def get_object_names(
        self, bucket: str | None, max_keys: int = 0
    ) -> Result[list[str]]:
        info = self.get_object_info(bucket, max_keys)
        if not info.ok:
            return info  # type: ignore[return-value]
        summaries = info.value_or([])
        if not summaries:
            return Result.empty()
        return Result.success([item["Key"] for item in summaries])

    # ------------------------------------------------------------------ objects

    def copy_object(
        self,
        src_bucket: str | None,
        src_key: str | None,
        dest_bucket: str | None,
        dest_key: str | None = None,
    ) -> Result[dict[str, Any]]:
        dest_key = dest_key or src_key
        if _is_empty(src_bucket, src_key, dest_bucket, dest_key):
            return self._invalid(
                "copy_object",
                f"from bucket {src_bucket} object {src_key} to bucket {dest_bucket} "
                f"object {dest_key}: all names are required",
            )

        src_bucket = self.normalize_bucket(src_bucket)
        dest_bucket = self.normalize_bucket(dest_bucket)
        if src_bucket == dest_bucket and src_key == dest_key:
            STORAGE_OPERATIONS.labels(
                "copy_object", ErrorKind.CONTRACT_VIOLATION.value
            ).inc()
            raise ContractViolationError(
                f"Cannot copy object {src_key} in bucket {src_bucket} onto itself"
            )

        try:
            with self._observe("copy_object"):
                response = self._client.copy_object(
                    Bucket=dest_bucket,
                    Key=dest_key,
                    CopySource={"Bucket": src_bucket, "Key": src_key},
                )
        except BACKEND_ERRORS as exc:
            logger.error(
                "from bucket %s object %s to bucket %s object %s failed",
                src_bucket,
                src_key,
                dest_bucket,
                dest_key,
                exc_info=True,
            )
            return self._record(
                "copy_object",
                Result.backend_error(f"Failed to copy object: {exc}", exc),
            )

        logger.info(
            "from bucket %s object %s to bucket %s object %s success",
            src_bucket,
            src_key,
            dest_bucket,
            dest_key,
        )
        return self._record(
            "copy_object", Result.success(response.get("CopyObjectResult", {}))
        )

    def delete_objects(
        self,
        bucket: str | None,
        keys: Iterable[ObjectRef] | None,
        *,
        quiet: bool = False,
    ) -> Result[dict[str, Any]]:
        """Delete several objects (or object versions) of a versioned bucket.

        ``keys`` holds plain keys or ``(key, version_id)`` pairs. Buckets
        without versioning enabled get an empty result and no delete call.
        """
        if not bucket:
            return self._invalid("delete_objects", "bucket name is empty")
        objects = [self._object_identifier(ref) for ref in keys or ()]
        if not objects:
            return self._invalid("delete_objects", "no keys to delete")

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("delete_objects"):
                status = self._client.get_bucket_versioning(Bucket=bucket).get("Status")
                if (status or "").lower() != VERSIONING_ENABLED.lower():
                    logger.warning("Bucket %s is not versioning-enabled.", bucket)
                    return self._record("delete_objects", Result.empty())
                response = self._client.delete_objects(
                    Bucket=bucket, Delete={"Objects": objects, "Quiet": quiet}
                )
        except BACKEND_ERRORS as exc:
            logger.error(
                "delete objects failed bucket=%s objects=%s quiet=%s",
                bucket,
                objects,
                quiet,
                exc_info=True,
            )
            return self._record(
                "delete_objects",
                Result.backend_error(f"Failed to delete objects: {exc}", exc),
            )
        return self._record("delete_objects", Result.success(response))

    @staticmethod
    def _object_identifier(ref: ObjectRef) -> dict[str, str]:
        if isinstance(ref, str):
            return {"Key": ref}
        key, version_id = ref
        identifier = {"Key": key}
        if version_id:
            identifier["VersionId"] = version_id
        return identifier

    def delete_object(self, bucket: str | None, key: str | None) -> bool:
        if _is_empty(bucket, key):
            self._invalid(
                "delete_object", f"bucket {bucket} and object {key} are required"
            )
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("delete_object"):
                self._client.delete_object(Bucket=bucket, Key=key)
        except BACKEND_ERRORS:
            logger.error(
                "delete bucket %s, object %s failed", bucket, key, exc_info=True
            )
            return self._record_flag("delete_object", False)
        logger.info("delete bucket %s, object %s success", bucket, key)
        return self._record_flag("delete_object", True)

    def delete_version(
        self, bucket: str | None, key: str | None, version_id: str | None
    ) -> bool:
        if _is_empty(bucket, key, version_id):
            self._invalid(
                "delete_version",
                f"bucket {bucket}, object {key} and version {version_id} are required",
            )
            return False

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("delete_version"):
                self._client.delete_object(Bucket=bucket, Key=key, VersionId=version_id)
        except BACKEND_ERRORS:
            logger.error(
                "delete bucket %s, object %s, version %s failed",
                bucket,
                key,
                version_id,
                exc_info=True,
            )
            return self._record_flag("delete_version", False)
        logger.info(
            "delete bucket %s, object %s, version %s success", bucket, key, version_id
        )
        return self._record_flag("delete_version", True)

    def upload_text(
        self,
        bucket: str | None,
        object_name: str | None,
        content: str | None,
        base_dir: str | None = None,
    ) -> Result[str]:
        """Store ``content`` under a generated key and return that key."""
        if _is_empty(bucket, object_name, content):
            return self._invalid(
                "upload_text", "bucket, object name and content are required"
            )

        bucket = self.normalize_bucket(bucket)
        object_key = self._key_namer.build(object_name, base_dir)
        try:
            with self._observe("upload_text"):
                self._client.put_object(
                    Bucket=bucket,
                    Key=object_key,
                    Body=content.encode("utf-8"),
                    ContentType="text/plain; charset=utf-8",
                )
        except BACKEND_ERRORS as exc:
            logger.error(
                "upload bucket %s, object %s failed", bucket, object_name, exc_info=True
            )
            return self._record(
                "upload_text",
                Result.backend_error(f"Failed to upload text: {exc}", exc),
            )
        logger.info("upload bucket %s, object %s success", bucket, object_key)
        return self._record("upload_text", Result.success(object_key))

    def upload_file(
        self,
        bucket: str | None,
        path: str | os.PathLike[str] | None,
        base_dir: str | None = None,
        *,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> Result[str]:
        """Upload a local file with a single PUT and return the generated key."""
        if not bucket or not path:
            return self._invalid("upload_file", "bucket and file path are required")
        if not Path(path).name:
            return self._invalid("upload_file", f"file path {path} has no file name")

        bucket = self.normalize_bucket(bucket)
        file_path = Path(path)
        object_key = self._key_namer.build(file_path.name, base_dir)
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if content_type:
            params["ContentType"] = content_type
        if metadata:
            params["Metadata"] = metadata

        try:
            with self._observe("upload_file"), file_path.open("rb") as body:
                self._client.put_object(Body=body, **params)
        except (*BACKEND_ERRORS, OSError) as exc:
            logger.error(
                "upload bucket %s, object %s failed",
                bucket,
                file_path.name,
                exc_info=True,
            )
            return self._record(
                "upload_file",
                Result.backend_error(f"Failed to upload file: {exc}", exc),
            )
        logger.info("upload bucket %s, object %s success", bucket, object_key)
        return self._record("upload_file", Result.success(object_key))

    def multipart_upload_v1(
        self,
        bucket: str | None,
        path: str | os.PathLike[str] | None,
        base_dir: str | None = None,
    ) -> Result[str]:
        """Upload a file part by part, sequentially, in 5 MiB parts."""
        if not bucket or not path:
            return self._invalid(
                "multipart_upload_v1", "bucket and file path are required"
            )
        if not Path(path).name:
            return self._invalid(
                "multipart_upload_v1", f"file path {path} has no file name"
            )
        with self._observe("multipart_upload_v1"):
            result = self._multipart.upload(
                self.normalize_bucket(bucket), path, base_dir
            )
        return self._record("multipart_upload_v1", result)

    def multipart_upload_v2(
        self,
        bucket: str | None,
        path: str | os.PathLike[str] | None,
        base_dir: str | None = None,
    ) -> Result[str]:
        """Upload a file through boto3's managed transfer and wait for it."""
        if not bucket or not path:
            return self._invalid(
                "multipart_upload_v2", "bucket and file path are required"
            )
        if not Path(path).name:
            return self._invalid(
                "multipart_upload_v2", f"file path {path} has no file name"
            )
        with self._observe("multipart_upload_v2"):
            result = self._transfer.upload(
                self.normalize_bucket(bucket), path, base_dir
            )
        return self._record("multipart_upload_v2", result)

    def get_object(self, bucket: str | None, key: str | None) -> Result[dict[str, Any]]:
        if _is_empty(bucket, key):
            return self._invalid(
                "get_object", f"bucket {bucket} and object {key} are required"
            )

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("get_object"):
                response = self._client.get_object(Bucket=bucket, Key=key)
        except BACKEND_ERRORS as exc:
            logger.error(
                "get bucket %s, object %s info failed", bucket, key, exc_info=True
            )
            return self._record(
                "get_object", Result.backend_error(f"Failed to get object: {exc}", exc)
            )
        return self._record("get_object", Result.success(response))

    def head_object(self, bucket: str | None, key: str | None) -> Result[ObjectHead]:
        if _is_empty(bucket, key):
            return self._invalid(
                "head_object", f"bucket {bucket} and object {key} are required"
            )

        bucket = self.normalize_bucket(bucket)
        try:
            with self._observe("head_object"):
                response = self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in NOT_FOUND_CODES:
                return self._record("head_object", Result.empty())
            logger.error("head bucket %s, object %s failed", bucket, key, exc_info=True)
            return self._record(
                "head_object",
                Result.backend_error(f"Failed to get object metadata: {exc}", exc),
            )
        except BotoCoreError as exc:
            logger.error("head bucket %s, object %s failed", bucket, key, exc_info=True)
            return self._record(
                "head_object",
                Result.backend_error(f"Failed to get object metadata: {exc}", exc),
            )

        size = response.get("ContentLength")
        return self._record(
            "head_object",
            Result.success(
                ObjectHead(
                    size_bytes=int(size) if size is not None else 0,
                    etag=response.get("ETag"),
                    content_type=response.get("ContentType"),
                )
            ),
        )

    # ------------------------------------------------------------------ urls

    def presign_expiration(self, expires: timedelta | int | float) -> datetime:
        """Absolute instant a URL signed now for ``expires`` stops being valid."""
        return self._clock() + _as_duration(expires)

    def presign(
        self,
        bucket: str | None,
        key: str | None,
        expires: timedelta | int | float | None,
        method: HttpMethod | None = HttpMethod.GET,
    ) -> Result[PresignedUrl]:
        """Sign a URL allowing ``method`` on one object until now + ``expires``."""
        if _is_empty(bucket, key) or expires is None or method is None:
            return self._invalid(
                "presign",
                f"bucket {bucket}, object {key}, expires {expires} and method "
                f"{method} are required",
            )
        duration = _as_duration(expires)
        expires_in = int(duration.total_seconds())
        if expires_in <= 0:
            return self._invalid(
                "presign", f"expires must be at least one second, got {expires}"
            )

        method = HttpMethod(method)
        bucket = self.normalize_bucket(bucket)
        expires_at = self.presign_expiration(expires_in)
        try:
            with self._observe("presign"):
                url = self._client.generate_presigned_url(
                    method.client_method,
                    Params={"Bucket": bucket, "Key": key},
                    ExpiresIn=expires_in,
                    HttpMethod=method.value,
                )
        except BACKEND_ERRORS as exc:
            logger.warning(
                "bucket %s, object %s, expires %s, presign %s url failed",
                bucket,
                key,
                expires_at.isoformat(),
                method.value,
                exc_info=True,
            )
            return self._record(
                "presign", Result.backend_error(f"Failed to presign URL: {exc}", exc)
            )
        if not url:
            return self._record(
                "presign", Result.backend_error("Generated presigned URL is empty")
            )

        logger.debug(
            "presigned %s url bucket=%s object=%s expires_at=%s",
            method.value,
            bucket,
            key,
            expires_at.isoformat(),
        )
        return self._record(
            "presign",
            Result.success(
                PresignedUrl(url=str(url), method=method, expires_at=expires_at)
            ),
        )

    def presigned_url(
        self,
        bucket: str | None,
        key: str | None,
        expires: timedelta | int | float | None,
        method: HttpMethod | None = HttpMethod.GET,
    ) -> Result[str]:
        signed = self.presign(bucket, key, expires, method)
        if signed.value is None:
            return signed  # type: ignore[return-value]
        return Result.success(signed.value.url)

    def presigned_put_url(
        self,
        bucket: str | None,
        key: str | None,
        expires: timedelta | int | float | None,
    ) -> Result[str]:
        return self.presigned_url(bucket, key, expires, HttpMethod.PUT)

    def object_url(self, key: str | None, bucket: str | None = None) -> Result[str]:
        """URL clients use to read ``key``.

        Private spaces get a GET URL signed for ``S3_TOKEN_TIME`` seconds;
        public ones a plain URL on ``S3_DOMAIN``, or on the endpoint with a
        path-style bucket segment when no domain is configured.
        """
        bucket = bucket or self.default_bucket_name()
        if _is_empty(bucket, key):
            return self._invalid("object_url", "bucket and object key are required")

        if self._settings.S3_PRIVATE:
            return self.presigned_url(bucket, key, self._settings.S3_TOKEN_TIME)

        path = quote(key.lstrip("/"), safe="/")
        domain = (self._settings.S3_DOMAIN or "").rstrip("/")
        if domain:
            if "://" not in domain:
                domain = f"https://{domain}"
            return Result.success(f"{domain}/{path}")

        endpoint = (self._settings.S3_ENDPOINT_URL or "").rstrip("/")
        if not endpoint:
            return self._invalid(
                "object_url", "S3_DOMAIN or S3_ENDPOINT_URL is required for public URLs"
            )
        return Result.success(f"{endpoint}/{self.normalize_bucket(bucket)}/{path}")


def build_template(settings: Settings, client: Any | None = None) -> S3Template:
    """Factory used at process startup to wire the facade from settings."""
    return S3Template(settings, client)

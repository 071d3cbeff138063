"""Object API router.

Thin HTTP surface over the storage facade: presigned URLs, object listing,
and client-facing object URLs.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from s3facade.api.v1.deps import get_template, raise_for_failure
from s3facade.api.v1.schemas.objects import (
    ObjectNamesOut,
    ObjectUrlOut,
    PresignOut,
    PresignRequest,
)
from s3facade.common.result import ContractViolationError
from s3facade.services.template import S3Template

router = APIRouter()


def _resolve_bucket(template: S3Template, bucket: str | None) -> str:
    resolved = bucket or template.default_bucket_name()
    if not resolved:
        raise HTTPException(
            status_code=400,
            detail={
                "message": "bucket is required when no default bucket is configured",
                "error_code": "validation_error",
            },
        )
    return resolved


@router.post(
    "/objects/presign",
    response_model=PresignOut,
    summary="Presign object URL",
    description="Sign a GET or PUT URL for one object, valid for expires_in seconds.",
)
def presign_object(
    payload: PresignRequest,
    template: S3Template = Depends(get_template),
) -> PresignOut:
    bucket = _resolve_bucket(template, payload.bucket)
    result = template.presign(bucket, payload.key, payload.expires_in, payload.method)
    raise_for_failure(result)
    signed = result.unwrap()
    return PresignOut(url=signed.url, method=signed.method, expires_at=signed.expires_at)


@router.get(
    "/objects",
    response_model=ObjectNamesOut,
    summary="List object keys",
    description="List every object key of a bucket, paging through the backend.",
)
def list_object_names(
    bucket: str | None = Query(default=None),
    max_keys: int = Query(default=0, ge=0, le=1000),
    template: S3Template = Depends(get_template),
) -> ObjectNamesOut:
    resolved = _resolve_bucket(template, bucket)
    result = template.get_object_names(resolved, max_keys)
    raise_for_failure(result)
    return ObjectNamesOut(
        bucket=template.normalize_bucket(resolved), keys=result.value_or([])
    )


@router.get(
    "/objects/url",
    response_model=ObjectUrlOut,
    summary="Get object URL",
    description="Public URL of an object, or a signed one for private spaces.",
)
def get_object_url(
    key: str = Query(min_length=1),
    bucket: str | None = Query(default=None),
    template: S3Template = Depends(get_template),
) -> ObjectUrlOut:
    result = template.object_url(key, bucket)
    raise_for_failure(result)
    return ObjectUrlOut(key=key, url=result.unwrap())


@router.post(
    "/objects/copy",
    summary="Copy object",
    description="Server-side copy of an object to another key or bucket.",
)
def copy_object(
    src_key: str = Query(min_length=1),
    dest_key: str | None = Query(default=None),
    src_bucket: str | None = Query(default=None),
    dest_bucket: str | None = Query(default=None),
    template: S3Template = Depends(get_template),
) -> dict:
    source = _resolve_bucket(template, src_bucket)
    target = _resolve_bucket(template, dest_bucket)
    try:
        result = template.copy_object(source, src_key, target, dest_key)
    except ContractViolationError as exc:
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "error_code": "contract_violation"},
        ) from exc
    raise_for_failure(result)
    return {"copied": True, "result": result.value_or({})}

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import HTTPException

from s3facade.common.config import get_settings
from s3facade.common.result import ErrorKind, Result, StorageFailure
from s3facade.services.template import S3Template, build_template

logger = logging.getLogger("http")

STATUS_BY_ERROR_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONTRACT_VIOLATION: 409,
    ErrorKind.BACKEND: 502,
}


@lru_cache(maxsize=1)
def get_template() -> S3Template:
    return build_template(get_settings())


def raise_for_failure(result: Result) -> None:
    """Translate a failed storage result into an HTTP error."""
    failure: StorageFailure | None = result.error
    if failure is None:
        return
    raise HTTPException(
        status_code=STATUS_BY_ERROR_KIND.get(failure.kind, 500),
        detail={"message": failure.message, "error_code": failure.kind.value},
    )

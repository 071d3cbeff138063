"""Object key generation for uploads."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Callable

from s3facade.common.config import DEFAULT_UPLOAD_BASE_DIR

FILE_SEPARATOR = "/"
FILENAME_LINK = "-"
DATE_PATTERN = "%Y/%m/%d"


def _random_token() -> str:
    return uuid.uuid4().hex


class KeyNamer:
    """Builds ``/<base_dir>/<yyyy>/<MM>/<dd>/<token>-<name>`` object keys.

    The date segment comes from ``clock`` at call time and the token from
    ``token_factory``; both default to the wall clock and a random UUID and
    can be replaced to make the output reproducible.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] | None = None,
        token_factory: Callable[[], str] | None = None,
        default_base_dir: str = DEFAULT_UPLOAD_BASE_DIR,
    ) -> None:
        self._clock = clock or datetime.now
        self._token_factory = token_factory or _random_token
        self._default_base_dir = default_base_dir or DEFAULT_UPLOAD_BASE_DIR

    @property
    def default_base_dir(self) -> str:
        return self._default_base_dir

    def build(self, object_name: str, base_dir: str | None = None) -> str:
        if not object_name:
            raise ValueError("object_name is required")
        base = base_dir or self._default_base_dir
        return (
            FILE_SEPARATOR
            + base
            + FILE_SEPARATOR
            + self._clock().strftime(DATE_PATTERN)
            + FILE_SEPARATOR
            + self._token_factory()
            + FILENAME_LINK
            + object_name
        )

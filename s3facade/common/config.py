from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_UPLOAD_BASE_DIR = "uploads"
DEFAULT_TOKEN_TIME = 1800
DEFAULT_CORS_ORIGINS: tuple[str, ...] = ("*",)
ADDRESSING_STYLES = frozenset({"path", "virtual", "auto"})


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class Settings:
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY: str | None = None
    S3_SECRET_KEY: str | None = None
    S3_BUCKET: str | None = None
    # Bucket domain or CDN host used to build public object URLs.
    S3_DOMAIN: str | None = None
    # Root folder readable through the facade; unset means everything.
    S3_BASE_PATH: str | None = None
    # Private spaces only hand out signed URLs.
    S3_PRIVATE: bool = False
    S3_TOKEN_TIME: int = DEFAULT_TOKEN_TIME
    S3_REGION: str | None = None
    # Some providers (Cloudflare R2, Oracle) need no CORS rule at all.
    S3_AUTO_CONFIG_CORS: bool = False
    S3_CORS_ORIGINS: list[str] = field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )
    S3_ADDRESSING_STYLE: str = "path"
    S3_VERIFY_SSL: bool = True
    S3_MAX_ATTEMPTS: int = 4
    S3_UPLOAD_BASE_DIR: str = DEFAULT_UPLOAD_BASE_DIR
    S3_CREATE_BUCKET_ON_STARTUP: bool = True
    ENABLE_METRICS: bool = True
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        if self.S3_TOKEN_TIME <= 0:
            raise ValueError("S3_TOKEN_TIME must be a positive number of seconds.")
        style = (self.S3_ADDRESSING_STYLE or "path").strip().lower()
        if style not in ADDRESSING_STYLES:
            raise ValueError(
                f"S3_ADDRESSING_STYLE must be one of {sorted(ADDRESSING_STYLES)}."
            )
        self.S3_ADDRESSING_STYLE = style
        if not self.S3_UPLOAD_BASE_DIR:
            self.S3_UPLOAD_BASE_DIR = DEFAULT_UPLOAD_BASE_DIR

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        cors_origins_env = os.environ.get("S3_CORS_ORIGINS")
        if cors_origins_env is None:
            cors_origins = list(DEFAULT_CORS_ORIGINS)
        else:
            cors_origins = _as_list(cors_origins_env)

        return cls(
            S3_ENDPOINT_URL=_as_optional(os.environ.get("S3_ENDPOINT_URL")),
            S3_ACCESS_KEY=_as_optional(os.environ.get("S3_ACCESS_KEY")),
            S3_SECRET_KEY=_as_optional(os.environ.get("S3_SECRET_KEY")),
            S3_BUCKET=_as_optional(os.environ.get("S3_BUCKET")),
            S3_DOMAIN=_as_optional(os.environ.get("S3_DOMAIN")),
            S3_BASE_PATH=_as_optional(os.environ.get("S3_BASE_PATH")),
            S3_PRIVATE=_as_bool(os.environ.get("S3_PRIVATE"), cls.S3_PRIVATE),
            S3_TOKEN_TIME=int(os.environ.get("S3_TOKEN_TIME", cls.S3_TOKEN_TIME)),
            S3_REGION=_as_optional(os.environ.get("S3_REGION")),
            S3_AUTO_CONFIG_CORS=_as_bool(
                os.environ.get("S3_AUTO_CONFIG_CORS"), cls.S3_AUTO_CONFIG_CORS
            ),
            S3_CORS_ORIGINS=cors_origins,
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_VERIFY_SSL=_as_bool(os.environ.get("S3_VERIFY_SSL"), cls.S3_VERIFY_SSL),
            S3_MAX_ATTEMPTS=int(
                os.environ.get("S3_MAX_ATTEMPTS", cls.S3_MAX_ATTEMPTS)
            ),
            S3_UPLOAD_BASE_DIR=os.environ.get(
                "S3_UPLOAD_BASE_DIR", cls.S3_UPLOAD_BASE_DIR
            ),
            S3_CREATE_BUCKET_ON_STARTUP=_as_bool(
                os.environ.get("S3_CREATE_BUCKET_ON_STARTUP"),
                cls.S3_CREATE_BUCKET_ON_STARTUP,
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()

"""Tests for environment-driven settings."""

import pytest

from s3facade.common import config as config_module
from s3facade.common.config import Settings, get_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "ENV_FILE", tmp_path / ".env")
    for name in list(Settings.__dataclass_fields__):
        # register every variable so values written by the .env loader are undone
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings.from_environment()

    assert settings.S3_TOKEN_TIME == 1800
    assert settings.S3_PRIVATE is False
    assert settings.S3_AUTO_CONFIG_CORS is False
    assert settings.S3_UPLOAD_BASE_DIR == "uploads"
    assert settings.S3_ADDRESSING_STYLE == "path"
    assert settings.S3_CORS_ORIGINS == ["*"]
    assert settings.S3_BUCKET is None


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("S3_ENDPOINT_URL", "http://minio:9000")
    monkeypatch.setenv("S3_ACCESS_KEY", "key")
    monkeypatch.setenv("S3_SECRET_KEY", "secret")
    monkeypatch.setenv("S3_BUCKET", "media")
    monkeypatch.setenv("S3_DOMAIN", "cdn.example.com")
    monkeypatch.setenv("S3_BASE_PATH", "/uploads")
    monkeypatch.setenv("S3_PRIVATE", "true")
    monkeypatch.setenv("S3_TOKEN_TIME", "600")
    monkeypatch.setenv("S3_REGION", "eu-west-1")
    monkeypatch.setenv("S3_AUTO_CONFIG_CORS", "yes")
    monkeypatch.setenv("S3_CORS_ORIGINS", "https://a.example.com, https://b.example.com")
    monkeypatch.setenv("S3_VERIFY_SSL", "0")

    settings = Settings.from_environment()

    assert settings.S3_ENDPOINT_URL == "http://minio:9000"
    assert settings.S3_ACCESS_KEY == "key"
    assert settings.S3_SECRET_KEY == "secret"
    assert settings.S3_BUCKET == "media"
    assert settings.S3_DOMAIN == "cdn.example.com"
    assert settings.S3_BASE_PATH == "/uploads"
    assert settings.S3_PRIVATE is True
    assert settings.S3_TOKEN_TIME == 600
    assert settings.S3_REGION == "eu-west-1"
    assert settings.S3_AUTO_CONFIG_CORS is True
    assert settings.S3_CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]
    assert settings.S3_VERIFY_SSL is False


def test_env_file_does_not_override_environment(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text(
        "# storage\nS3_BUCKET='from-file'\nS3_REGION=us-west-2\n", encoding="utf-8"
    )
    monkeypatch.setenv("S3_BUCKET", "from-env")

    settings = Settings.from_environment()

    assert settings.S3_BUCKET == "from-env"
    assert settings.S3_REGION == "us-west-2"


def test_blank_values_are_unset(monkeypatch):
    monkeypatch.setenv("S3_BUCKET", "  ")

    assert Settings.from_environment().S3_BUCKET is None


def test_rejects_non_positive_token_time():
    with pytest.raises(ValueError, match="S3_TOKEN_TIME"):
        Settings(S3_TOKEN_TIME=0)


def test_rejects_unknown_addressing_style():
    with pytest.raises(ValueError, match="S3_ADDRESSING_STYLE"):
        Settings(S3_ADDRESSING_STYLE="sideways")


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("S3_BUCKET", "first")
    first = get_settings()
    monkeypatch.setenv("S3_BUCKET", "second")

    assert get_settings() is first

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from s3facade.common.config import Settings
from s3facade.infra.storage.naming import KeyNamer
from s3facade.services.template import S3Template

FIXED_NOW = datetime(2024, 3, 7, 12, 30, 0, tzinfo=timezone.utc)
FIXED_TOKEN = "0123456789abcdef0123456789abcdef"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        S3_ENDPOINT_URL="http://localhost:9000",
        S3_ACCESS_KEY="test-key",
        S3_SECRET_KEY="test-secret",
        S3_BUCKET="default-bucket",
        S3_REGION="us-east-1",
    )


@pytest.fixture
def mock_s3() -> MagicMock:
    """Stand-in for the boto3 S3 client."""
    return MagicMock()


@pytest.fixture
def key_namer() -> KeyNamer:
    return KeyNamer(clock=lambda: FIXED_NOW, token_factory=lambda: FIXED_TOKEN)


@pytest.fixture
def template(settings, mock_s3, key_namer) -> S3Template:
    return S3Template(settings, mock_s3, key_namer=key_namer, clock=lambda: FIXED_NOW)

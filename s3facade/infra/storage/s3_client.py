"""boto3 client construction for S3-compatible services.

Works with AWS S3, MinIO, and other S3-compatible object storage services.
Everything that used to be global SDK state (certificate checks, addressing
style, retry budget) is passed to the client explicitly.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config

if TYPE_CHECKING:
    from s3facade.common.config import Settings

logger = logging.getLogger(__name__)


def build_client_config(settings: "Settings") -> Config:
    """Create the botocore ``Config`` for the storage client."""
    addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
    return Config(
        signature_version="s3v4",
        s3={"addressing_style": addressing_style},
        retries={"max_attempts": int(settings.S3_MAX_ATTEMPTS), "mode": "standard"},
    )


def build_s3_client(settings: "Settings") -> Any:
    """Create a boto3 S3 client from settings."""
    client = boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        verify=bool(settings.S3_VERIFY_SSL),
        config=build_client_config(settings),
    )
    logger.info(
        "s3_client_created endpoint=%s region=%s verify_ssl=%s",
        settings.S3_ENDPOINT_URL or "<aws>",
        settings.S3_REGION or "<default>",
        settings.S3_VERIFY_SSL,
    )
    return client

"""Tests for the object API endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from s3facade.api.v1.deps import get_template
from s3facade.common.config import Settings
from s3facade.main import create_app
from tests.conftest import FIXED_NOW


@pytest.fixture
def client(template):
    app = create_app(Settings(ENABLE_METRICS=False))
    app.dependency_overrides[get_template] = lambda: template
    return TestClient(app)


def test_presign_put(client, mock_s3):
    mock_s3.generate_presigned_url.return_value = "https://signed-put"

    resp = client.post(
        "/api/v1/objects/presign",
        json={"key": "a.txt", "expires_in": 600, "method": "PUT"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["url"] == "https://signed-put"
    assert body["method"] == "PUT"
    assert body["expires_at"].startswith(
        (FIXED_NOW + timedelta(seconds=600)).strftime("%Y-%m-%dT%H:%M:%S")
    )
    args, kwargs = mock_s3.generate_presigned_url.call_args
    assert args == ("put_object",)
    assert kwargs["Params"] == {"Bucket": "default-bucket", "Key": "a.txt"}


def test_presign_backend_failure_is_bad_gateway(client, mock_s3):
    mock_s3.generate_presigned_url.side_effect = ClientError(
        {"Error": {"Code": "InvalidRequest", "Message": "nope"}}, "GeneratePresignedUrl"
    )

    resp = client.post("/api/v1/objects/presign", json={"key": "a.txt"})

    assert resp.status_code == 502
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["error_code"] == "backend_error"


def test_presign_rejects_empty_key(client):
    resp = client.post("/api/v1/objects/presign", json={"key": ""})

    assert resp.status_code == 422
    assert resp.json()["error_code"] == "validation_error"


def test_list_object_names(client, mock_s3):
    mock_s3.list_objects_v2.return_value = {
        "Contents": [{"Key": "a"}, {"Key": "b"}],
        "IsTruncated": False,
    }

    resp = client.get("/api/v1/objects", params={"bucket": "Media"})

    assert resp.status_code == 200
    assert resp.json() == {"bucket": "media", "keys": ["a", "b"]}


def test_list_object_names_empty_bucket(client, mock_s3):
    mock_s3.list_objects_v2.return_value = {"IsTruncated": False}

    resp = client.get("/api/v1/objects")

    assert resp.json() == {"bucket": "default-bucket", "keys": []}


def test_object_url(client):
    resp = client.get("/api/v1/objects/url", params={"key": "a.txt"})

    assert resp.status_code == 200
    assert resp.json()["url"] == "http://localhost:9000/default-bucket/a.txt"


def test_copy_onto_itself_is_conflict(client, mock_s3):
    resp = client.post("/api/v1/objects/copy", params={"src_key": "a.txt"})

    assert resp.status_code == 409
    assert resp.json()["error_code"] == "contract_violation"
    mock_s3.copy_object.assert_not_called()


def test_copy_to_new_key(client, mock_s3):
    mock_s3.copy_object.return_value = {"CopyObjectResult": {"ETag": '"e"'}}

    resp = client.post(
        "/api/v1/objects/copy", params={"src_key": "a.txt", "dest_key": "b.txt"}
    )

    assert resp.status_code == 200
    assert resp.json() == {"copied": True, "result": {"ETag": '"e"'}}


def test_bucket_required_without_default(mock_s3, key_namer):
    from s3facade.services.template import S3Template

    template = S3Template(Settings(), mock_s3, key_namer=key_namer)
    app = create_app(Settings(ENABLE_METRICS=False))
    app.dependency_overrides[get_template] = lambda: template

    resp = TestClient(app).get("/api/v1/objects")

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "validation_error"

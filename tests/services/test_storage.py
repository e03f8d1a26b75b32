# tests/services/test_storage.py
"""Tests for the S3-compatible object storage adapter."""

import boto3
import pytest
from botocore.config import Config
from botocore.stub import Stubber

from reel_stage.services.storage import (
    S3ObjectStorage,
    StorageError,
    asset_paths,
    thumbnail_object_key,
    video_object_key,
)

BUCKET = "reel-test"


@pytest.fixture()
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )


@pytest.fixture()
def stubbed(s3_client):
    with Stubber(s3_client) as stubber:
        yield S3ObjectStorage(bucket=BUCKET, client=s3_client, upload_ttl_seconds=1200), stubber
        stubber.assert_no_pending_responses()


def test_object_keys():
    assert video_object_key("abc") == "videos/abc"
    assert thumbnail_object_key("abc") == "thumbnails/videos/abc.jpg"
    assert asset_paths("abc") == {"video": "videos/abc", "thumbnail": "thumbnails/videos/abc.jpg"}


def test_empty_bucket_rejected(s3_client):
    with pytest.raises(StorageError):
        S3ObjectStorage(bucket="", client=s3_client)


def test_presigned_upload_location(s3_client):
    storage = S3ObjectStorage(bucket=BUCKET, client=s3_client, upload_ttl_seconds=1200)
    location = storage.request_upload_location("videos/abc")

    assert location.path == "videos/abc"
    assert "videos/abc" in location.url
    assert "X-Amz-Expires=1200" in location.url


def test_exists_true(stubbed):
    storage, stubber = stubbed
    stubber.add_response("head_object", {}, {"Bucket": BUCKET, "Key": "videos/abc"})
    assert storage.exists("videos/abc") is True


def test_exists_false_on_404(stubbed):
    storage, stubber = stubbed
    stubber.add_client_error(
        "head_object",
        service_error_code="404",
        http_status_code=404,
        expected_params={"Bucket": BUCKET, "Key": "videos/abc"},
    )
    assert storage.exists("videos/abc") is False


def test_exists_raises_on_other_errors(stubbed):
    storage, stubber = stubbed
    stubber.add_client_error("head_object", service_error_code="AccessDenied", http_status_code=403)
    with pytest.raises(StorageError):
        storage.exists("videos/abc")


def test_delete(stubbed):
    storage, stubber = stubbed
    stubber.add_response("delete_object", {}, {"Bucket": BUCKET, "Key": "videos/abc"})
    storage.delete("videos/abc")


def test_delete_failure(stubbed):
    storage, stubber = stubbed
    stubber.add_client_error("delete_object", service_error_code="InternalError", http_status_code=500)
    with pytest.raises(StorageError):
        storage.delete("videos/abc")

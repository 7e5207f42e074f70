from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from services.s3 import S3Service, UploadError


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.meta.endpoint_url = "https://s3.us-east-2.amazonaws.com"
    return client


def test_upload_image_returns_object_url(s3_client):
    service = S3Service("feed-images", s3_client)

    url = service.upload_image(b"\x89PNG", "image/png", "alice")

    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "feed-images"
    assert kwargs["Key"].startswith("posts/alice/")
    assert kwargs["Key"].endswith(".png")
    assert kwargs["Metadata"] == {"user_id": "alice"}
    assert url == f"https://s3.us-east-2.amazonaws.com/feed-images/{kwargs['Key']}"


def test_non_image_is_rejected(s3_client):
    with pytest.raises(UploadError):
        S3Service("feed-images", s3_client).upload_image(b"%PDF", "application/pdf", "alice")

    s3_client.put_object.assert_not_called()


def test_oversize_image_is_rejected(s3_client):
    data = b"0" * (1024 * 1024 + 1)

    with pytest.raises(UploadError) as exc_info:
        S3Service("feed-images", s3_client).upload_image(data, "image/jpeg", "alice", max_size_mb=1)

    assert "1MB" in exc_info.value.message
    s3_client.put_object.assert_not_called()


def test_client_error_becomes_upload_error(s3_client):
    s3_client.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
    )

    with pytest.raises(UploadError) as exc_info:
        S3Service("feed-images", s3_client).upload_image(b"\x89PNG", "image/png", "alice")

    assert exc_info.value.message == "Failed to upload image."

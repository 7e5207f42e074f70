import logging
import mimetypes
import uuid
from datetime import datetime
from urllib.parse import quote

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Image upload failed, `message` is safe to show to the user"""

    def __init__(self, message: str = "Failed to upload image."):
        super().__init__(message)
        self.message = message


class S3Service:
    def __init__(self, bucket_name: str, client: boto3.client):
        """
        Initialize the S3 service with bucket name and client
        """
        self.bucket_name = bucket_name
        self.s3 = client

    def object_url(self, key: str) -> str:
        """Public URL of an object, path-style against the client's endpoint"""
        endpoint = self.s3.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket_name}/{quote(key)}"

    def upload_image(self, data: bytes, content_type: str, user_id: str, max_size_mb: int = 5) -> str:
        """
        Upload a post image to S3 with user ownership metadata

        Args:
            data: The raw image bytes
            content_type: MIME type reported by the client, must be image/*
            user_id: The ID of the user uploading the image
            max_size_mb: Maximum file size in MB

        Returns:
            The URL of the uploaded object

        Raises:
            UploadError: If validation fails or S3 rejects the upload
        """
        if not content_type or not content_type.startswith("image/"):
            raise UploadError("Only image files can be attached to a post.")

        if len(data) > max_size_mb * 1024 * 1024:
            raise UploadError(f"File is too big! Please use an image under {max_size_mb}MB.")

        # Create a unique key that includes the user ID to enforce ownership
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        extension = mimetypes.guess_extension(content_type) or ""
        key = f"posts/{user_id}/{timestamp}-{uuid.uuid4()}{extension}"

        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={
                    'user_id': user_id
                }
            )
        except ClientError as e:
            logger.error("S3 upload error: %s", e)
            raise UploadError()

        return self.object_url(key)

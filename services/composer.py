import logging
from typing import Optional

from models.post import ImageUpload, Visibility
from models.user import AuthUser
from services.firestore import FirestoreDB
from services.s3 import S3Service

logger = logging.getLogger(__name__)


class PostError(Exception):
    def __init__(self, message: str = "Failed to post."):
        super().__init__(message)
        self.message = message


class PostComposer:
    def __init__(self, db: FirestoreDB, storage: S3Service, max_image_size_mb: int = 5):
        self.db = db
        self.storage = storage
        self.max_image_size_mb = max_image_size_mb

    def submit(
            self,
            user: AuthUser,
            content: str,
            image: Optional[ImageUpload] = None,
            visibility: Visibility = Visibility.PUBLIC,
    ) -> Optional[str]:
        """
        Upload the optional image, then create the post record

        :return: the new post id, or None when there is neither text nor image
        :raises UploadError: if the image upload fails, nothing is written
        :raises PostError: if the post record cannot be written
        """
        if not content.strip() and image is None:
            return None

        image_url = ""
        if image is not None:
            # An uploaded image stays in the bucket if the post write below fails
            image_url = self.storage.upload_image(
                image.data,
                image.content_type,
                user.uid,
                max_size_mb=self.max_image_size_mb,
            )

        try:
            post_id = self.db.create_post({
                "authorId": user.uid,
                "authorName": user.display_name or "Anonymous",
                "authorPhoto": user.photo_url or None,
                "content": content,
                "imageURL": image_url,
                "visibility": visibility.value,
            })
        except Exception as e:
            logger.error("Error posting: %s", e)
            raise PostError()

        logger.info("Post %s created by %s", post_id, user.uid)
        return post_id

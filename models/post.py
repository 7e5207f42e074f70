from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class Post(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    author_id: str = Field(..., alias="authorId")
    author_name: str = Field("Anonymous", alias="authorName")
    author_photo: Optional[str] = Field(None, alias="authorPhoto")
    content: str = ""
    image_url: str = Field("", alias="imageURL")
    visibility: Visibility = Visibility.PUBLIC
    likes: List[str] = []
    comments_count: int = Field(0, alias="commentsCount")
    created_at: Optional[Any] = Field(None, alias="createdAt")


class ImageUpload(BaseModel):
    filename: str
    content_type: str
    data: bytes


class LikeResult(BaseModel):
    post_id: str
    liked: bool
    likes: int

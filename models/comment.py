from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Comment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    author_id: str = Field(..., alias="authorId")
    author_name: Optional[str] = Field(None, alias="authorName")
    author_photo: Optional[str] = Field(None, alias="authorPhoto")
    parent_id: Optional[str] = Field(None, alias="parentId")
    likes: List[str] = []
    created_at: Optional[Any] = Field(None, alias="createdAt")


class CommentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    parent_id: Optional[str] = Field(None, alias="parentId")


class CommentThread(BaseModel):
    """
    Two-level thread: root comments in creation order, and the flat replies of
    each root keyed by the root's id
    """
    root_comments: List[Comment] = []
    replies_by_root: Dict[str, List[Comment]] = {}

    def replies(self, root_id: str) -> List[Comment]:
        return self.replies_by_root.get(root_id, [])

import html
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import bleach

from models.comment import Comment, CommentThread
from models.user import AuthUser
from services.feed import is_visible
from services.firestore import FirestoreDB

logger = logging.getLogger(__name__)


class CommentError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def build_thread(comments: List[Dict[str, Any]]) -> CommentThread:
    """
    Split comments into roots and their replies, keeping creation order.

    Replies always point at a root, so the thread is exactly two levels deep.
    """
    thread = CommentThread()
    for data in comments:
        comment = Comment.model_validate(data)
        if comment.parent_id is None:
            thread.root_comments.append(comment)
        else:
            thread.replies_by_root.setdefault(comment.parent_id, []).append(comment)
    return thread


class CommentService:
    def __init__(self, db: FirestoreDB):
        self.db = db

    def get_visible_post(self, post_id: str, viewer_id: str) -> Dict[str, Any]:
        """The post document, if it exists and the viewer may see it"""
        post = self.db.get_post(post_id)
        if post is None or not is_visible(post, viewer_id):
            raise CommentError("Post not found")
        return post

    async def stream(self, post_id: str, viewer_id: str) -> AsyncIterator[CommentThread]:
        """Yield the post's thread on every update of the comments live query"""
        self.get_visible_post(post_id, viewer_id)
        subscription = self.db.watch_comments(post_id)
        try:
            async for comments in subscription:
                yield build_thread(comments)
        finally:
            subscription.cancel()

    def get_thread(self, post_id: str, viewer_id: str) -> CommentThread:
        self.get_visible_post(post_id, viewer_id)
        return build_thread(self.db.get_comments(post_id))

    def _root_of(self, post_id: str, parent_id: str) -> str:
        parent = self.db.get_comment(post_id, parent_id)
        if parent is None:
            raise CommentError("Comment not found")
        return parent.get("parentId") or parent_id

    def submit_comment(
            self,
            post_id: str,
            user: AuthUser,
            text: str,
            parent_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Add a comment or a reply to a post.

        Replying to a reply attaches the new comment to the original root. The
        post's comment count is bumped with an atomic server-side increment.
        Markup tags are stripped; everything else, `&` and `<` included, is
        stored as typed.

        :return: the new comment id, or None for blank text
        """
        if not text.strip():
            return None

        self.get_visible_post(post_id, user.uid)

        root_id = self._root_of(post_id, parent_id) if parent_id else None

        comment_id = self.db.add_comment(post_id, {
            "text": html.unescape(bleach.clean(text, strip=True)),
            "authorId": user.uid,
            "authorName": user.display_name,
            "authorPhoto": user.photo_url,
            "parentId": root_id,
        })
        self.db.increment_comments_count(post_id)

        logger.info("Comment %s added to post %s", comment_id, post_id)
        return comment_id

import asyncio
import logging
from typing import List, Optional

from models.comment import Comment
from models.post import Post
from models.user import UserProfile
from services.firestore import FirestoreDB

logger = logging.getLogger(__name__)


def toggle_post_like(db: FirestoreDB, post: Post, user_id: str) -> bool:
    """
    Flip the user's membership in the post's likers using the store's atomic
    set add/remove. The decision is taken from the locally known likers.

    :return: True if the post is now liked by the user
    """
    if user_id in post.likes:
        db.remove_post_like(post.id, user_id)
        return False
    db.add_post_like(post.id, user_id)
    return True


def toggle_comment_like(db: FirestoreDB, post_id: str, comment: Comment, user_id: str) -> bool:
    if user_id in comment.likes:
        db.remove_comment_like(post_id, comment.id, user_id)
        return False
    db.add_comment_like(post_id, comment.id, user_id)
    return True


def like_summary(likes: List[str], viewer_id: Optional[str]) -> str:
    count = len(likes)
    liked = viewer_id is not None and viewer_id in likes
    if count == 0:
        return ""
    if count == 1 and liked:
        return "You liked this"
    if count == 1:
        return "1 person liked this"
    if liked:
        return f"You and {count - 1} others"
    return f"{count} people liked this"


class LikesResolver:
    """Resolves liker ids to profiles for the "people who liked this" list"""

    def __init__(self, db: FirestoreDB):
        self.db = db

    async def _lookup(self, uid: str) -> Optional[UserProfile]:
        data = await asyncio.to_thread(self.db.get_user, uid)
        if data is None:
            return None
        return UserProfile.model_validate({"uid": uid, **data})

    async def open(self, user_ids: List[str]) -> List[UserProfile]:
        """
        Look every id up concurrently and keep the ones that resolved. Missing
        users and failed lookups are left out rather than failing the list.
        """
        if not user_ids:
            return []

        results = await asyncio.gather(
            *(self._lookup(uid) for uid in user_ids),
            return_exceptions=True,
        )

        users = []
        for uid, result in zip(user_ids, results):
            if isinstance(result, Exception):
                logger.error("Error fetching liker %s: %s", uid, result)
                continue
            if result is not None:
                users.append(result)
        return users

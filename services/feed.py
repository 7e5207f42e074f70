from typing import Any, AsyncIterator, Dict, List, Optional

from models.post import Post, Visibility
from services.firestore import FirestoreDB


def is_visible(post: Dict[str, Any], viewer_id: Optional[str]) -> bool:
    """Public posts are visible to everyone, private ones only to their author"""
    visibility = post.get("visibility")
    if visibility == Visibility.PUBLIC.value:
        return True
    if visibility == Visibility.PRIVATE.value and viewer_id is not None:
        return post.get("authorId") == viewer_id
    return False


def visible_posts(posts: List[Dict[str, Any]], viewer_id: Optional[str]) -> List[Post]:
    return [Post.model_validate(post) for post in posts if is_visible(post, viewer_id)]


class FeedList:
    def __init__(self, db: FirestoreDB):
        self.db = db

    async def stream(self, viewer_id: Optional[str]) -> AsyncIterator[List[Post]]:
        """
        Yield the viewer's full feed, newest first, every time the live query
        delivers a new result set. The listener is released when the consumer
        stops iterating.
        """
        subscription = self.db.watch_posts()
        try:
            async for posts in subscription:
                yield visible_posts(posts, viewer_id)
        finally:
            subscription.cancel()

    async def snapshot(self, viewer_id: Optional[str]) -> List[Post]:
        """The first result set delivered by the live query"""
        feed = self.stream(viewer_id)
        try:
            async for posts in feed:
                return posts
            return []
        finally:
            await feed.aclose()

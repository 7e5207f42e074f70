import logging
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import firestore as fs
from google.cloud import firestore

from services.subscription import Subscription

logger = logging.getLogger(__name__)


def _to_dict(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


class FirestoreDB:
    def __init__(self, app: firebase_admin.App):
        self.db = fs.client(app)

    def collection(self, name: str):
        return self.db.collection(name)

    def _comments(self, post_id: str):
        return self.collection("posts").document(post_id).collection("comments")

    def _watch(self, query) -> Subscription:
        """Start a live query and expose its result sets as a Subscription"""
        subscription = Subscription()

        def on_snapshot(docs, changes, read_time):
            try:
                subscription.push([_to_dict(doc) for doc in docs])
            except Exception as e:
                subscription.fail(e)

        watch = query.on_snapshot(on_snapshot)
        subscription.bind(watch.unsubscribe)
        return subscription

    # users

    def get_user(self, uid: str) -> Optional[Dict[str, Any]]:
        """Point-read a user profile, None when it does not exist"""
        snapshot = self.collection("users").document(uid).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def user_exists(self, uid: str) -> bool:
        return self.collection("users").document(uid).get().exists

    def create_user(self, profile: Dict[str, Any]) -> None:
        self.collection("users").document(profile["uid"]).set(profile)

    # posts

    def create_post(self, data: Dict[str, Any]) -> str:
        """Create a post with a server-assigned timestamp, no likes and no comments"""
        new_post_ref = self.collection("posts").document()
        new_post_ref.set({
            **data,
            "likes": [],
            "commentsCount": 0,
            "createdAt": firestore.SERVER_TIMESTAMP,
        })
        return new_post_ref.id

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self.collection("posts").document(post_id).get()
        if not snapshot.exists:
            return None
        return _to_dict(snapshot)

    def watch_posts(self) -> Subscription:
        """Live query over every post, newest first"""
        query = self.collection("posts").order_by("createdAt", direction=firestore.Query.DESCENDING)
        return self._watch(query)

    def add_post_like(self, post_id: str, user_id: str) -> None:
        self.collection("posts").document(post_id).update({"likes": firestore.ArrayUnion([user_id])})

    def remove_post_like(self, post_id: str, user_id: str) -> None:
        self.collection("posts").document(post_id).update({"likes": firestore.ArrayRemove([user_id])})

    def increment_comments_count(self, post_id: str, amount: int = 1) -> None:
        """Server-side atomic increment, concurrent commenters never lose an update"""
        self.collection("posts").document(post_id).update({"commentsCount": firestore.Increment(amount)})

    # comments

    def add_comment(self, post_id: str, data: Dict[str, Any]) -> str:
        comment_ref = self._comments(post_id).document()
        comment_ref.set({
            **data,
            "likes": [],
            "createdAt": firestore.SERVER_TIMESTAMP,
        })
        return comment_ref.id

    def get_comment(self, post_id: str, comment_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self._comments(post_id).document(comment_id).get()
        if not snapshot.exists:
            return None
        return _to_dict(snapshot)

    def get_comments(self, post_id: str) -> List[Dict[str, Any]]:
        """Get comments for a post, oldest first"""
        comments_ref = self._comments(post_id).order_by(
            "createdAt", direction=firestore.Query.ASCENDING
        ).stream()
        return [_to_dict(doc) for doc in comments_ref]

    def watch_comments(self, post_id: str) -> Subscription:
        query = self._comments(post_id).order_by("createdAt", direction=firestore.Query.ASCENDING)
        return self._watch(query)

    def add_comment_like(self, post_id: str, comment_id: str, user_id: str) -> None:
        self._comments(post_id).document(comment_id).update({"likes": firestore.ArrayUnion([user_id])})

    def remove_comment_like(self, post_id: str, comment_id: str, user_id: str) -> None:
        self._comments(post_id).document(comment_id).update({"likes": firestore.ArrayRemove([user_id])})

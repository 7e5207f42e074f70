"""Shared in-memory doubles for Firestore and S3."""
import copy
import itertools
from typing import Any, Dict, List, Optional

import pytest

from models.user import AuthUser
from services.s3 import UploadError
from services.subscription import Subscription


class InMemoryFirestore:
    """Stands in for FirestoreDB with the same method surface and live queries"""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.posts: Dict[str, Dict[str, Any]] = {}
        self.comments: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.failing_users: set[str] = set()
        self.post_watchers: List[Subscription] = []
        self.comment_watchers: Dict[str, List[Subscription]] = {}
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # helpers

    def _sorted_posts(self) -> List[Dict[str, Any]]:
        posts = sorted(self.posts.values(), key=lambda p: p["createdAt"], reverse=True)
        return copy.deepcopy(posts)

    def _sorted_comments(self, post_id: str) -> List[Dict[str, Any]]:
        comments = sorted(self.comments.get(post_id, {}).values(), key=lambda c: c["createdAt"])
        return copy.deepcopy(comments)

    def _notify_posts(self):
        for subscription in list(self.post_watchers):
            subscription.push(self._sorted_posts())

    def _notify_comments(self, post_id: str):
        for subscription in list(self.comment_watchers.get(post_id, [])):
            subscription.push(self._sorted_comments(post_id))

    # users

    def get_user(self, uid: str) -> Optional[Dict[str, Any]]:
        if uid in self.failing_users:
            raise RuntimeError(f"lookup of {uid} failed")
        user = self.users.get(uid)
        return copy.deepcopy(user) if user else None

    def user_exists(self, uid: str) -> bool:
        return uid in self.users

    def create_user(self, profile: Dict[str, Any]) -> None:
        self.users[profile["uid"]] = dict(profile)

    # posts

    def create_post(self, data: Dict[str, Any]) -> str:
        post_id = f"post{next(self._ids)}"
        self.posts[post_id] = {
            **data,
            "id": post_id,
            "likes": [],
            "commentsCount": 0,
            "createdAt": next(self._clock),
        }
        self._notify_posts()
        return post_id

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        post = self.posts.get(post_id)
        return copy.deepcopy(post) if post else None

    def watch_posts(self) -> Subscription:
        subscription = Subscription()
        self.post_watchers.append(subscription)
        subscription.bind(lambda: self.post_watchers.remove(subscription))
        subscription.push(self._sorted_posts())
        return subscription

    def add_post_like(self, post_id: str, user_id: str) -> None:
        likes = self.posts[post_id]["likes"]
        if user_id not in likes:
            likes.append(user_id)
        self._notify_posts()

    def remove_post_like(self, post_id: str, user_id: str) -> None:
        self.posts[post_id]["likes"] = [uid for uid in self.posts[post_id]["likes"] if uid != user_id]
        self._notify_posts()

    def increment_comments_count(self, post_id: str, amount: int = 1) -> None:
        self.posts[post_id]["commentsCount"] += amount
        self._notify_posts()

    # comments

    def add_comment(self, post_id: str, data: Dict[str, Any]) -> str:
        comment_id = f"comment{next(self._ids)}"
        self.comments.setdefault(post_id, {})[comment_id] = {
            **data,
            "id": comment_id,
            "likes": [],
            "createdAt": next(self._clock),
        }
        self._notify_comments(post_id)
        return comment_id

    def get_comment(self, post_id: str, comment_id: str) -> Optional[Dict[str, Any]]:
        comment = self.comments.get(post_id, {}).get(comment_id)
        return copy.deepcopy(comment) if comment else None

    def get_comments(self, post_id: str) -> List[Dict[str, Any]]:
        return self._sorted_comments(post_id)

    def watch_comments(self, post_id: str) -> Subscription:
        subscription = Subscription()
        watchers = self.comment_watchers.setdefault(post_id, [])
        watchers.append(subscription)
        subscription.bind(lambda: watchers.remove(subscription))
        subscription.push(self._sorted_comments(post_id))
        return subscription

    def add_comment_like(self, post_id: str, comment_id: str, user_id: str) -> None:
        likes = self.comments[post_id][comment_id]["likes"]
        if user_id not in likes:
            likes.append(user_id)
        self._notify_comments(post_id)

    def remove_comment_like(self, post_id: str, comment_id: str, user_id: str) -> None:
        comment = self.comments[post_id][comment_id]
        comment["likes"] = [uid for uid in comment["likes"] if uid != user_id]
        self._notify_comments(post_id)


class FakeStorage:
    def __init__(self):
        self.uploads: List[Dict[str, Any]] = []
        self.fail = False

    def upload_image(self, data: bytes, content_type: str, user_id: str, max_size_mb: int = 5) -> str:
        if self.fail:
            raise UploadError()
        key = f"posts/{user_id}/image-{len(self.uploads) + 1}"
        self.uploads.append({"key": key, "data": data, "content_type": content_type})
        return f"https://s3.test/bucket/{key}"


@pytest.fixture
def fake_db() -> InMemoryFirestore:
    return InMemoryFirestore()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def alice() -> AuthUser:
    return AuthUser(uid="alice", display_name="Alice Smith", email="alice@example.com")


@pytest.fixture
def bob() -> AuthUser:
    return AuthUser(uid="bob", display_name="Bob Jones", email="bob@example.com", photo_url="https://img.test/bob.png")

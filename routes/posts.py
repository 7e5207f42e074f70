import asyncio
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from dependencies import Composer, CurrentUser, Firestore, Likes
from models.post import ImageUpload, LikeResult, Post, Visibility
from models.user import UserProfile
from services.feed import is_visible
from services.likes import toggle_post_like

router = APIRouter()


def load_post(db: Firestore, post_id: str, viewer_id: str) -> Post:
    """Private posts of other authors are reported as missing"""
    data = db.get_post(post_id)
    if data is None or not is_visible(data, viewer_id):
        raise HTTPException(status_code=404, detail="Post not found")
    return Post.model_validate(data)


@router.post("")
async def create_post(
        composer: Composer,
        current_user: CurrentUser,
        content: str = Form(""),
        visibility: Visibility = Form(Visibility.PUBLIC),
        image: Optional[UploadFile] = File(None),
) -> Dict[str, Any]:
    """Create a post from text and/or an image"""
    upload = None
    if image is not None and image.filename:
        upload = ImageUpload(
            filename=image.filename,
            content_type=image.content_type or "",
            data=await image.read(),
        )

    # S3 and Firestore clients block
    post_id = await asyncio.to_thread(composer.submit, current_user, content, upload, visibility)
    if post_id is None:
        raise HTTPException(status_code=400, detail="A post needs text or an image")

    return {"id": post_id, "message": "Post created"}


@router.post("/{post_id}/like", response_model=LikeResult)
async def toggle_like(post_id: str, db: Firestore, current_user: CurrentUser):
    """Toggle like status for a post"""
    post = load_post(db, post_id, current_user.uid)
    liked = toggle_post_like(db, post, current_user.uid)
    likes = len(post.likes) + (1 if liked else -1)
    return LikeResult(post_id=post_id, liked=liked, likes=likes)


@router.get("/{post_id}/likes", response_model=List[UserProfile])
async def list_likes(post_id: str, db: Firestore, likes: Likes, current_user: CurrentUser):
    """Profiles of the people who liked a post"""
    post = load_post(db, post_id, current_user.uid)
    return await likes.open(post.likes)

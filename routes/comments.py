import json
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from dependencies import Comments, CurrentUser, Firestore
from models.comment import Comment, CommentRequest, CommentThread
from services.comments import CommentService
from services.likes import like_summary, toggle_comment_like

router = APIRouter()

logger = logging.getLogger(__name__)


def serialize_thread(thread: CommentThread, viewer_id: str) -> List[Dict[str, Any]]:
    """Roots with their replies nested one level, plus the like text for each"""

    def serialize(comment: Comment) -> Dict[str, Any]:
        data = comment.model_dump(mode="json", by_alias=True)
        data["likeSummary"] = like_summary(comment.likes, viewer_id)
        return data

    return [
        {**serialize(root), "replies": [serialize(reply) for reply in thread.replies(root.id)]}
        for root in thread.root_comments
    ]


async def generate_comment_stream(request: Request, comments: CommentService, post_id: str, viewer_id: str):
    updates = comments.stream(post_id, viewer_id)
    try:
        async for thread in updates:
            if await request.is_disconnected():
                break
            yield f"data: {json.dumps(serialize_thread(thread, viewer_id))}\n\n"
    except Exception as e:
        logger.error("Comment stream for %s failed: %s", post_id, e)
        yield f"data: {json.dumps({'error': 'Failed to load comments.'})}\n\n"
    finally:
        await updates.aclose()


@router.get("/{post_id}/comments")
async def get_comments(post_id: str, comments: Comments, current_user: CurrentUser):
    return serialize_thread(comments.get_thread(post_id, current_user.uid), current_user.uid)


@router.get("/{post_id}/comments/stream")
async def stream_comments(request: Request, post_id: str, comments: Comments, current_user: CurrentUser):
    """Live thread for an expanded post; closing the stream releases the listener"""
    comments.get_visible_post(post_id, current_user.uid)
    return StreamingResponse(
        generate_comment_stream(request, comments, post_id, current_user.uid),
        media_type="text/event-stream"
    )


@router.post("/{post_id}/comments")
async def add_comment(
        post_id: str,
        comment: CommentRequest,
        comments: Comments,
        current_user: CurrentUser
) -> Dict[str, Any]:
    """Add a comment or a reply to a post"""
    comment_id = comments.submit_comment(post_id, current_user, comment.text, comment.parent_id)
    if comment_id is None:
        raise HTTPException(status_code=400, detail="Comment text is required")
    return {"id": comment_id, "post_id": post_id}


@router.post("/{post_id}/comments/{comment_id}/like")
async def like_comment(post_id: str, comment_id: str, db: Firestore, comments: Comments,
                       current_user: CurrentUser) -> Dict[str, Any]:
    comments.get_visible_post(post_id, current_user.uid)
    data = db.get_comment(post_id, comment_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Comment not found")

    comment = Comment.model_validate(data)
    liked = toggle_comment_like(db, post_id, comment, current_user.uid)
    return {"comment_id": comment_id, "liked": liked}

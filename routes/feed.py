import json
import logging
from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from dependencies import CurrentUser, Feed
from models.post import Post
from services.feed import FeedList

router = APIRouter()

logger = logging.getLogger(__name__)


async def generate_feed_stream(request: Request, feed: FeedList, viewer_id: str):
    """Forward every feed update as a server-sent event until the client goes away"""
    updates = feed.stream(viewer_id)
    try:
        async for posts in updates:
            if await request.is_disconnected():
                break
            payload = [post.model_dump(mode="json", by_alias=True) for post in posts]
            yield f"data: {json.dumps(payload)}\n\n"
    except Exception as e:
        logger.error("Feed stream failed: %s", e)
        yield f"data: {json.dumps({'error': 'Failed to load posts.'})}\n\n"
    finally:
        await updates.aclose()


@router.get("", response_model=List[Post])
async def get_feed(feed: Feed, current_user: CurrentUser):
    """Posts visible to the current user, newest first"""
    return await feed.snapshot(current_user.uid)


@router.get("/stream")
async def stream_feed(request: Request, feed: Feed, current_user: CurrentUser):
    return StreamingResponse(
        generate_feed_stream(request, feed, current_user.uid),
        media_type="text/event-stream"
    )

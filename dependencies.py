from typing import Annotated

from fastapi import Request, Depends, HTTPException

from models.user import AuthUser
from services.auth import FirebaseAuthClient
from services.comments import CommentService
from services.composer import PostComposer
from services.feed import FeedList
from services.firestore import FirestoreDB
from services.likes import LikesResolver
from services.session import GuardState, RouteGuard, SessionProvider


async def get_session_provider(request: Request) -> SessionProvider:
    return request.app.state.session_provider


async def get_current_user(provider: SessionProvider = Depends(get_session_provider)) -> AuthUser:
    """
    Route guard: only lets the request through once the session has resolved
    to a signed-in user
    """
    state = RouteGuard(provider).resolve()
    if state is GuardState.PENDING:
        raise HTTPException(
            status_code=503,
            detail="Session is loading",
            headers={"Retry-After": "1"}
        )
    if state is GuardState.REDIRECTING:
        raise HTTPException(
            status_code=307,
            detail="Not signed in",
            headers={"Location": RouteGuard.login_path}
        )
    return provider.current_user


async def get_auth_client(request: Request) -> FirebaseAuthClient:
    """Get auth client from app state"""
    return request.app.state.auth_client


async def get_firestore(request: Request) -> FirestoreDB:
    """ Get Firestore DB from app state """
    return request.app.state.firestore


async def get_composer(request: Request) -> PostComposer:
    return request.app.state.composer


async def get_feed(db: FirestoreDB = Depends(get_firestore)) -> FeedList:
    return FeedList(db)


async def get_comment_service(db: FirestoreDB = Depends(get_firestore)) -> CommentService:
    return CommentService(db)


async def get_likes_resolver(db: FirestoreDB = Depends(get_firestore)) -> LikesResolver:
    return LikesResolver(db)


CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
Session = Annotated[SessionProvider, Depends(get_session_provider)]
Auth = Annotated[FirebaseAuthClient, Depends(get_auth_client)]
Firestore = Annotated[FirestoreDB, Depends(get_firestore)]
Composer = Annotated[PostComposer, Depends(get_composer)]
Feed = Annotated[FeedList, Depends(get_feed)]
Comments = Annotated[CommentService, Depends(get_comment_service)]
Likes = Annotated[LikesResolver, Depends(get_likes_resolver)]

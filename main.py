import logging
import os
from contextlib import asynccontextmanager

import aiohttp
import boto3
import firebase_admin
from botocore.config import Config
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from firebase_admin import credentials
from starlette.middleware.cors import CORSMiddleware

from routes.auth import router as auth_router
from routes.comments import router as comments_router
from routes.feed import router as feed_router
from routes.posts import router as posts_router
from services.auth import AuthError, FirebaseAuthClient
from services.comments import CommentError
from services.composer import PostComposer, PostError
from services.firestore import FirestoreDB
from services.s3 import S3Service, UploadError
from services.session import SessionProvider

load_dotenv()

logging.basicConfig(level=logging.INFO,
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

FIREBASE_API_KEY = os.environ.get("FIREBASE_API_KEY", "")
FIREBASE_CREDENTIALS_PATH = os.environ.get("FIREBASE_CREDENTIALS_PATH", "./firebase.json")
BUCKET_NAME = os.environ.get("S3_BUCKET_NAME")
MAX_IMAGE_SIZE_MB = int(os.environ.get("MAX_IMAGE_SIZE_MB", "5"))
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Firebase Admin SDK
    cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
    firebase_app = firebase_admin.initialize_app(cred)

    # S3 client
    s3_client = boto3.client(
        's3',
        aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY"),
        region_name=os.environ.get("AWS_REGION", "us-east-2"),
        config=Config(signature_version="s3v4")
    )

    # Initialize dependencies
    session = aiohttp.ClientSession()
    s3 = S3Service(BUCKET_NAME, s3_client)
    firestore = FirestoreDB(firebase_app)
    auth_client = FirebaseAuthClient(FIREBASE_API_KEY, session, firestore)
    session_provider = SessionProvider(auth_client)
    session_provider.start()

    app.state.session = session
    app.state.s3_service = s3
    app.state.firestore = firestore
    app.state.auth_client = auth_client
    app.state.session_provider = session_provider
    app.state.composer = PostComposer(firestore, s3, max_image_size_mb=MAX_IMAGE_SIZE_MB)

    logger.info("Feed client started")
    yield
    # Cleanup resources
    session_provider.close()
    await session.close()
    firebase_admin.delete_app(firebase_app)


app = FastAPI(lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthError)
async def handle_auth_error(request: Request, exc: AuthError):
    status_code = 400 if exc.code == "EMAIL_EXISTS" else 401
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(UploadError)
async def handle_upload_error(request: Request, exc: UploadError):
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.exception_handler(PostError)
async def handle_post_error(request: Request, exc: PostError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(CommentError)
async def handle_comment_error(request: Request, exc: CommentError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(feed_router, prefix="/feed", tags=["feed"])
app.include_router(posts_router, prefix="/posts", tags=["posts"])
app.include_router(comments_router, prefix="/posts", tags=["comments"])

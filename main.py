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

from models.errors import ServiceError
from routes.posts import router as posts_router
from routes.users import router as users_router
from services.firestore import FirestoreDB
from services.identity import IdentityService
from services.posts import PostService
from services.s3 import S3Service

load_dotenv()

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"),
                    format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

FIREBASE_CREDENTIALS = os.environ.get("FIREBASE_CREDENTIALS", "./firebase.json")
FIREBASE_WEB_API_KEY = os.environ.get("FIREBASE_WEB_API_KEY")
BUCKET_NAME = os.environ.get("S3_BUCKET_NAME")
S3_PUBLIC_URL = os.environ.get("S3_PUBLIC_URL")
MAX_IMAGE_SIZE_MB = int(os.environ.get("MAX_IMAGE_SIZE_MB", "5"))
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",")

# S3 client
s3_client = boto3.client(
    's3',
    aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID"),
    aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY"),
    region_name=os.environ.get("AWS_REGION", "us-east-2"),
    config=Config(signature_version="s3v4")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Firebase Admin SDK
    cred = credentials.Certificate(FIREBASE_CREDENTIALS)
    firebase_app = firebase_admin.initialize_app(cred)

    # Initialize dependencies
    session = aiohttp.ClientSession()
    s3 = S3Service(BUCKET_NAME, s3_client, public_url=S3_PUBLIC_URL, max_size_mb=MAX_IMAGE_SIZE_MB)
    firestore = FirestoreDB(firebase_app)

    app.state.session = session
    app.state.s3_service = s3
    app.state.firestore = firestore
    app.state.identity_service = IdentityService(firestore, session, FIREBASE_WEB_API_KEY)
    app.state.post_service = PostService(firestore, s3)
    logger.info("Social feed API started (bucket=%s)", BUCKET_NAME)

    yield
    # Cleanup resources
    await session.close()
    firebase_admin.delete_app(firebase_app)


app = FastAPI(lifespan=lifespan)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(posts_router, prefix="/posts", tags=["posts"])
app.include_router(users_router, prefix="/users", tags=["users"])

"""FastAPI web application for profilehub."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from profilehub import config
from profilehub.api.clients import get_blob_store, get_notifier, get_photo_stager
from profilehub.api.schemas import AuthResponse, DeleteResponse, LoginRequest, UserResponse, UsersResponse
from profilehub.api.ui import INDEX_HTML
from profilehub.auth.dependencies import get_current_user_id, get_token_issuer
from profilehub.auth.jwt import TokenIssuer
from profilehub.database.database import get_db, init_db
from profilehub.database.user_repository import UserRepository
from profilehub.errors import ProfileHubError, UnauthorizedError, ValidationError
from profilehub.integrations.blob_store import S3BlobStore
from profilehub.integrations.mailer import SMTPNotifier
from profilehub.pipelines.profile import ProfilePipeline
from profilehub.pipelines.registration import RegistrationPipeline
from profilehub.pipelines.session import login
from profilehub.pipelines.staging import PhotoStager, PhotoUpload

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    init_db()
    if config.SMTP_VERIFY_ON_STARTUP:
        get_notifier().check_connection()
    yield


app = FastAPI(
    title="profilehub API",
    description="User registration and management with photo storage",
    version=config.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Locally retained upload artifacts
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")


# Error handling

def _error_body(exc: ProfileHubError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": exc.message}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    if config.DEBUG and exc.detail:
        body["error"] = exc.detail
    return body


@app.exception_handler(ProfileHubError)
async def handle_profilehub_error(request: Request, exc: ProfileHubError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc), headers=headers)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = [
        {"field": str(err["loc"][-1]) if err.get("loc") else "body", "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    content = {"message": "Server error"}
    if config.DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# Dependencies

def get_registration_pipeline(
    db: Session = Depends(get_db),
    blob_store: S3BlobStore = Depends(get_blob_store),
    notifier: SMTPNotifier = Depends(get_notifier),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    stager: PhotoStager = Depends(get_photo_stager),
) -> RegistrationPipeline:
    return RegistrationPipeline(UserRepository(db), blob_store, notifier, token_issuer, stager=stager)


def get_profile_pipeline(
    db: Session = Depends(get_db),
    blob_store: S3BlobStore = Depends(get_blob_store),
    stager: PhotoStager = Depends(get_photo_stager),
) -> ProfilePipeline:
    return ProfilePipeline(UserRepository(db), blob_store, stager=stager)


def _read_upload(photo: Optional[UploadFile]) -> Optional[PhotoUpload]:
    """Turn a multipart file part into a PhotoUpload (None when no file was chosen)."""
    if photo is None or not photo.filename:
        return None
    # Read one byte past the limit so oversize files are still detected.
    data = photo.file.read(config.MAX_PHOTO_BYTES + 1)
    return PhotoUpload(
        filename=photo.filename,
        content_type=photo.content_type or "application/octet-stream",
        data=data,
    )


def _form_fields(**values: Any) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


# Routes

@app.get("/", response_class=HTMLResponse)
def root():
    """Single-page UI."""
    return INDEX_HTML


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": config.APP_VERSION}


@app.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    dob: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    hobbies: Optional[List[str]] = Form(None),
    hobbies_list: Optional[List[str]] = Form(None, alias="hobbies[]"),
    photo: Optional[UploadFile] = File(None),
    pipeline: RegistrationPipeline = Depends(get_registration_pipeline),
):
    """Register a new user with a profile photo."""
    fields = _form_fields(
        firstName=first_name,
        lastName=last_name,
        email=email,
        password=password,
        dob=dob,
        gender=gender,
        hobbies=hobbies or hobbies_list or [],
    )
    outcome = pipeline.register(fields, _read_upload(photo)).unwrap()
    return AuthResponse(message=outcome.message, token=outcome.token, user=outcome.user)


@app.post("/auth/login", response_model=AuthResponse)
def login_user(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    blob_store: S3BlobStore = Depends(get_blob_store),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Exchange email and password for a session token."""
    token, user = login(UserRepository(db), token_issuer, blob_store, credentials.email, credentials.password)
    return AuthResponse(message="Login successful", token=token, user=user)


@app.get("/users", response_model=UsersResponse)
def list_users(
    current_user_id: str = Depends(get_current_user_id),
    pipeline: ProfilePipeline = Depends(get_profile_pipeline),
):
    """List all users with signed photo URLs."""
    users = pipeline.list_users()
    return UsersResponse(message="Users retrieved successfully", count=len(users), users=users)


@app.get("/users/profile/me", response_model=UserResponse)
def get_my_profile(
    current_user_id: str = Depends(get_current_user_id),
    pipeline: ProfilePipeline = Depends(get_profile_pipeline),
):
    """Profile of the authenticated user."""
    return UserResponse(message="User profile retrieved", user=pipeline.get_current_user(current_user_id))


@app.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    pipeline: ProfilePipeline = Depends(get_profile_pipeline),
):
    """Get a user by ID."""
    return UserResponse(message="User retrieved successfully", user=pipeline.get_user(user_id))


@app.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    first_name: Optional[str] = Form(None, alias="firstName"),
    last_name: Optional[str] = Form(None, alias="lastName"),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    dob: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    hobbies: Optional[List[str]] = Form(None),
    hobbies_list: Optional[List[str]] = Form(None, alias="hobbies[]"),
    photo: Optional[UploadFile] = File(None),
    current_user_id: str = Depends(get_current_user_id),
    pipeline: ProfilePipeline = Depends(get_profile_pipeline),
):
    """Partially update a user; an uploaded photo replaces the current one."""
    fields = _form_fields(
        firstName=first_name,
        lastName=last_name,
        email=email,
        password=password,
        dob=dob,
        gender=gender,
        hobbies=hobbies or hobbies_list,
    )
    user = pipeline.update_user(user_id, fields, _read_upload(photo))
    return UserResponse(message="User updated successfully", user=user)


@app.delete("/users/{user_id}", response_model=DeleteResponse)
def delete_user(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    pipeline: ProfilePipeline = Depends(get_profile_pipeline),
):
    """Delete a user and, best effort, their photo."""
    deleted_id = pipeline.delete_user(user_id)
    return DeleteResponse(message="User deleted successfully", user_id=deleted_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)

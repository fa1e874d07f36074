"""HTTP interface for blog accounts."""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, File, Request, UploadFile, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from .config import ENV_CONFIG_PATH, Settings, load_settings, resolve_config_path
from .database import Database
from .errors import AuthenticationRequiredError, BlogError
from .models import ProfileImageChange, UploadedImage, User
from .service import UserService
from .storage import PUBLIC_PREFIX, ProfileImageStorage
from .validators import (
    MAX_PROFILE_IMAGE_SIZE,
    JoinRequest,
    LoginRequest,
    UpdateRequest,
    validate_profile_image_size,
)

logger = logging.getLogger("blog.web")

SESSION_COOKIE_NAME = "blog_session"
SESSION_USER_KEY = "user_id"

GATED_PATH = re.compile(r"^/(board|user|reply)(/.*)?$")
PUBLIC_BOARD_DETAIL = re.compile(r"^/board/\d+$")


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    profile_image_path: Optional[str] = None
    created_at: datetime


class ProfileImageResponse(BaseModel):
    user: UserResponse
    warnings: List[str]


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        profile_image_path=user.profile_image_path,
        created_at=user.created_at,
    )


def change_to_response(change: ProfileImageChange) -> ProfileImageResponse:
    return ProfileImageResponse(
        user=user_to_response(change.user),
        warnings=list(change.warnings),
    )


def requires_login(path: str) -> bool:
    """Return ``True`` for paths that only signed-in users may reach."""

    return bool(GATED_PATH.match(path)) and not PUBLIC_BOARD_DETAIL.match(path)


def _error_response(exc: BlogError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": exc.message, "details": exc.details},
    )


class LoginGateMiddleware(BaseHTTPMiddleware):
    """Reject anonymous requests to the board, user and reply paths."""

    async def dispatch(self, request: Request, call_next):
        if requires_login(request.url.path) and not request.session.get(SESSION_USER_KEY):
            logger.info("Blocked anonymous request to %s", request.url.path)
            return _error_response(AuthenticationRequiredError("Login is required"))
        return await call_next(request)


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    storage: ProfileImageStorage | None = None,
    session_secret: str | None = None,
) -> FastAPI:
    """Create the blog web application.

    *session_secret* overrides the secret from *settings* for signing the
    session cookie.
    """

    if settings is None:
        settings = load_settings(resolve_config_path(os.getenv(ENV_CONFIG_PATH)))

    if database is None:
        database = Database(settings.database_path)
    database.initialize()

    if storage is None:
        storage = ProfileImageStorage(settings.upload_dir)
    storage.ensure_directory()

    service = UserService(database, storage)

    app = FastAPI(
        title="Blog Accounts",
        version="0.1.0",
        description="Registration, login and profile management for the blog.",
    )
    app.state.database = database
    app.state.storage = storage
    app.state.user_service = service

    if not settings.secure_cookies:
        logger.warning(
            "Session cookies are not marked as secure. Only disable secure cookies for"
            " local development."
        )

    # Middleware added last runs first: the session must be loaded before the gate.
    app.add_middleware(LoginGateMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret or settings.session_secret,
        session_cookie=SESSION_COOKIE_NAME,
        https_only=settings.secure_cookies,
        same_site="lax",
        max_age=60 * 60 * 24 * 7,
    )

    app.mount(
        PUBLIC_PREFIX.rstrip("/"),
        StaticFiles(directory=str(storage.upload_dir)),
        name="profile_images",
    )

    @app.exception_handler(BlogError)
    async def handle_blog_error(request: Request, exc: BlogError) -> JSONResponse:
        return _error_response(exc)

    def _current_user(request: Request) -> User:
        user_id = request.session.get(SESSION_USER_KEY)
        if not user_id:
            raise AuthenticationRequiredError("Login is required")
        user = database.get_user(int(user_id))
        if user is None:
            request.session.pop(SESSION_USER_KEY, None)
            raise AuthenticationRequiredError("Login is required")
        return user

    @app.get("/healthz")
    async def healthcheck():
        return {"status": "ok"}

    @app.post("/join", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
    async def join(payload: JoinRequest) -> UserResponse:
        return user_to_response(service.join(payload))

    @app.post("/login", response_model=UserResponse)
    async def login(request: Request, payload: LoginRequest) -> UserResponse:
        user = service.login(payload)
        request.session.clear()
        request.session[SESSION_USER_KEY] = user.id
        logger.info("User %s signed in", user.id)
        return user_to_response(user)

    @app.get("/logout")
    async def logout(request: Request):
        request.session.clear()
        return {"status": "signed-out"}

    @app.get("/user/me", response_model=UserResponse)
    async def me(request: Request) -> UserResponse:
        return user_to_response(_current_user(request))

    @app.post("/user/update", response_model=UserResponse)
    async def update_profile(request: Request, payload: UpdateRequest) -> UserResponse:
        user = _current_user(request)
        return user_to_response(service.update_profile(user.id, payload))

    @app.post("/user/profile-image", response_model=ProfileImageResponse)
    async def upload_profile_image(
        request: Request,
        profile_image: Optional[UploadFile] = File(default=None),
    ) -> ProfileImageResponse:
        user = _current_user(request)
        image = None
        if profile_image is not None:
            validate_profile_image_size(profile_image.size)
            # One byte past the limit is enough for the size check to fail.
            content = await profile_image.read(MAX_PROFILE_IMAGE_SIZE + 1)
            image = UploadedImage(
                filename=profile_image.filename,
                content_type=profile_image.content_type,
                content=content,
            )
        return change_to_response(service.upload_profile_image(user.id, image))

    @app.post("/user/profile-image/delete", response_model=ProfileImageResponse)
    async def delete_profile_image(request: Request) -> ProfileImageResponse:
        user = _current_user(request)
        return change_to_response(service.delete_profile_image(user.id))

    return app


__all__ = ["LoginGateMiddleware", "create_app", "requires_login", "user_to_response"]

"""Account workflows for the blog.

:class:`UserService` sequences validation, profile image storage and user
persistence for each use case. Image operations keep the user pointing at a
readable file at every step: a new image is stored and recorded before the old
one is removed, and a removal clears the database reference before touching
the file.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from .errors import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    StorageDeleteError,
    StorageError,
    UploadFailedError,
    UserNotFoundError,
)
from .models import ProfileImageChange, UploadedImage, User
from .repository import UserRepository
from .storage import ProfileImageStorage
from .validators import (
    JoinRequest,
    LoginRequest,
    UpdateRequest,
    validate_join,
    validate_login,
    validate_profile_image,
    validate_update,
)

logger = logging.getLogger("blog.service")


def join_request_to_fields(request: JoinRequest) -> Dict[str, str]:
    """Map a validated join request onto ``create_user`` keyword arguments."""

    return {
        "username": (request.username or "").strip(),
        "password": request.password or "",
        "email": (request.email or "").strip(),
    }


class UserService:
    """Application service for registration, login and profile changes."""

    def __init__(self, database: UserRepository, storage: ProfileImageStorage) -> None:
        self._database = database
        self._storage = storage

    def join(self, request: JoinRequest) -> User:
        validate_join(request)
        fields = join_request_to_fields(request)

        with self._database.transaction():
            if self._database.get_user_by_username(fields["username"]) is not None:
                raise DuplicateUsernameError(
                    "That username is already taken",
                    details={"username": fields["username"]},
                )
            user = self._database.create_user(**fields)

        logger.info("User %s joined as %s", user.id, user.username)
        return user

    def login(self, request: LoginRequest) -> User:
        validate_login(request)
        user = self._database.authenticate_user(
            (request.username or "").strip(),
            request.password or "",
        )
        if user is None:
            logger.warning("Failed login attempt for %s", request.username)
            raise InvalidCredentialsError("Invalid username or password")
        return user

    def find_by_id(self, user_id: int) -> User:
        user = self._database.get_user(user_id)
        if user is None:
            logger.warning("User lookup failed - id %s", user_id)
            raise UserNotFoundError("User not found", details={"user_id": user_id})
        return user

    def update_profile(self, user_id: int, request: UpdateRequest) -> User:
        validate_update(request)

        with self._database.transaction():
            user = self.find_by_id(user_id)
            self._database.set_user_password(user.id, request.password or "")
            updated = self._database.update_user(
                replace(user, email=(request.email or "").strip())
            )

        logger.info("User %s updated their profile", updated.id)
        return updated

    def upload_profile_image(self, user_id: int, image: Optional[UploadedImage]) -> ProfileImageChange:
        """Store *image* as the user's profile picture, replacing any old one.

        Raises:
            ValidationError: If the image is missing, too large or not an image
            UserNotFoundError: If the user does not exist
            UploadFailedError: If the file could not be written
        """

        validate_profile_image(image)
        user = self.find_by_id(user_id)
        old_image_path = user.profile_image_path

        try:
            new_image_path = self._storage.store(image.content, image.filename)
        except StorageError as exc:
            logger.exception("Profile image upload failed for user %s", user.id)
            raise UploadFailedError(
                "Profile image upload failed",
                details={"user_id": user.id},
            ) from exc

        try:
            with self._database.transaction():
                updated = self._database.set_profile_image_path(user.id, new_image_path)
        except Exception:
            logger.error(
                "Could not record profile image %s for user %s; discarding it",
                new_image_path,
                user.id,
            )
            self._discard(new_image_path)
            raise

        warnings: List[str] = []
        if old_image_path and old_image_path != new_image_path:
            warning = self._remove_file(old_image_path, user_id=user.id)
            if warning:
                warnings.append(warning)

        logger.info("User %s uploaded profile image %s", updated.id, new_image_path)
        return ProfileImageChange(user=updated, warnings=tuple(warnings))

    def delete_profile_image(self, user_id: int) -> ProfileImageChange:
        with self._database.transaction():
            user = self.find_by_id(user_id)
            image_path = user.profile_image_path
            if image_path:
                user = self._database.set_profile_image_path(user.id, None)

        warnings: List[str] = []
        if image_path:
            warning = self._remove_file(image_path, user_id=user.id)
            if warning:
                warnings.append(warning)
            logger.info("User %s removed profile image %s", user.id, image_path)

        return ProfileImageChange(user=user, warnings=tuple(warnings))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _remove_file(self, image_path: str, *, user_id: int) -> Optional[str]:
        try:
            self._storage.delete(image_path)
        except StorageDeleteError as exc:
            logger.warning(
                "Profile image %s of user %s could not be removed: %s",
                image_path,
                user_id,
                exc.message,
            )
            return f"The old profile image file could not be removed: {exc.message}"
        return None

    def _discard(self, image_path: str) -> None:
        try:
            self._storage.delete(image_path)
        except StorageDeleteError:
            logger.warning("Failed to clean up unrecorded profile image %s", image_path)


__all__ = ["UserService", "join_request_to_fields"]

"""Request shapes and the validation rules applied to them.

The request models accept anything string-like and leave the rules to the
``validate_*`` functions, so the first violated rule decides the message.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .errors import ValidationError
from .models import UploadedImage

PASSWORD_MIN_LENGTH = 4
MAX_PROFILE_IMAGE_SIZE = 20 * 1024 * 1024


class JoinRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class UpdateRequest(BaseModel):
    password: Optional[str] = None
    email: Optional[str] = None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _require_email(email: Optional[str]) -> None:
    if email is None or "@" not in email:
        raise ValidationError("Email address is not valid", details={"field": "email"})


def validate_join(request: JoinRequest) -> None:
    if _is_blank(request.username):
        raise ValidationError("Username is required", details={"field": "username"})
    if _is_blank(request.password):
        raise ValidationError("Password is required", details={"field": "password"})
    _require_email(request.email)


def validate_login(request: LoginRequest) -> None:
    if _is_blank(request.username):
        raise ValidationError("Username is required", details={"field": "username"})
    if _is_blank(request.password):
        raise ValidationError("Password is required", details={"field": "password"})


def validate_update(request: UpdateRequest) -> None:
    if _is_blank(request.password):
        raise ValidationError("Password is required", details={"field": "password"})
    if len(request.password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
            details={"field": "password"},
        )
    _require_email(request.email)


def validate_profile_image_size(size: Optional[int]) -> None:
    """Reject an upload whose declared size is over the limit.

    An unknown size (``None``) passes; the content is checked again once read.
    """

    if size is not None and size > MAX_PROFILE_IMAGE_SIZE:
        raise ValidationError(
            f"Profile images must be {MAX_PROFILE_IMAGE_SIZE // (1024 * 1024)}MB or smaller",
            details={"field": "profile_image", "size": size},
        )


def validate_profile_image(image: Optional[UploadedImage]) -> None:
    """Check a selected profile image before anything touches storage."""

    if image is None or image.size == 0:
        raise ValidationError("Please select a profile image", details={"field": "profile_image"})

    validate_profile_image_size(image.size)

    content_type = image.content_type
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError(
            "Only image files can be uploaded",
            details={"field": "profile_image", "content_type": content_type or ""},
        )


__all__ = [
    "JoinRequest",
    "LoginRequest",
    "MAX_PROFILE_IMAGE_SIZE",
    "PASSWORD_MIN_LENGTH",
    "UpdateRequest",
    "validate_join",
    "validate_login",
    "validate_profile_image",
    "validate_profile_image_size",
    "validate_update",
]

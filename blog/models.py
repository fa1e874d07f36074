"""Domain models for blog accounts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class User:
    """Represents a registered account stored in the blog database."""

    id: int
    username: str
    email: str
    created_at: datetime
    profile_image_path: Optional[str] = None


@dataclass(frozen=True)
class UploadedImage:
    """An image file selected by the user for their profile."""

    filename: Optional[str]
    content_type: Optional[str]
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ProfileImageChange:
    """Outcome of a profile image upload or removal.

    ``warnings`` lists cleanup problems that did not prevent the change.
    """

    user: User
    warnings: Tuple[str, ...] = ()


__all__ = ["ProfileImageChange", "UploadedImage", "User"]

"""User accounts and profile images for the blog."""

from __future__ import annotations

from typing import Any

from .database import Database
from .service import UserService
from .storage import ProfileImageStorage


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the blog web application."""

    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "Database",
    "ProfileImageStorage",
    "UserService",
    "create_app",
]

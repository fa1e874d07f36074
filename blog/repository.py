"""Abstract contract for user persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ContextManager, Optional

from .models import User


class UserRepository(ABC):
    """Contract the user service relies on for storing accounts.

    Changes to a :class:`User` are never picked up implicitly: callers hand the
    mutated object back through :meth:`update_user`,
    :meth:`set_profile_image_path` or :meth:`set_user_password`.
    """

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Return the user with *user_id*, or ``None``."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        """Return the user registered as *username*, or ``None``."""

    @abstractmethod
    def authenticate_user(self, username: str, password: str) -> Optional[User]:
        """Return the user when *password* matches the stored hash.

        Unknown usernames and wrong passwords both return ``None``.
        """

    @abstractmethod
    def create_user(self, username: str, password: str, email: str) -> User:
        """Insert a new account and return it with its assigned identifier.

        Raises:
            DuplicateUsernameError: If *username* is already registered
        """

    @abstractmethod
    def update_user(self, user: User) -> User:
        """Persist the email and profile image path of *user*.

        Raises:
            UserNotFoundError: If the account no longer exists
        """

    @abstractmethod
    def set_profile_image_path(self, user_id: int, image_path: Optional[str]) -> User:
        """Point *user_id* at *image_path* (or at no image) without touching other fields.

        Raises:
            UserNotFoundError: If the account no longer exists
        """

    @abstractmethod
    def set_user_password(self, user_id: int, password: str) -> None:
        """Replace the stored password hash for *user_id*."""

    @abstractmethod
    def transaction(self) -> ContextManager[None]:
        """Group the calls made inside the block into one unit of work."""


__all__ = ["UserRepository"]

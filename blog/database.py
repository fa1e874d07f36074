"""SQLite-backed persistence for blog users."""
from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from passlib.context import CryptContext

from .errors import DuplicateUsernameError, UserNotFoundError
from .models import User
from .repository import UserRepository


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def _verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


class Database(UserRepository):
    """Simple wrapper around SQLite for persisting users."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path
        self._local = threading.local()

    @property
    def path(self) -> Path:
        return self._path

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        active = getattr(self._local, "connection", None)
        if active is not None:
            yield active
            return

        conn = self._open()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run every statement issued inside the block on one connection.

        The block commits on success and rolls back if it raises. Nested
        blocks join the outermost transaction.
        """

        if getattr(self._local, "connection", None) is not None:
            yield
            return

        conn = self._open()
        self._local.connection = conn
        try:
            with conn:
                yield
        finally:
            self._local.connection = None
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    email TEXT NOT NULL,
                    profile_image_path TEXT,
                    created_at TEXT NOT NULL
                );
                """
            )

            columns = {
                row["name"]
                for row in conn.execute("PRAGMA table_info(users)").fetchall()
            }
            if "profile_image_path" not in columns:
                conn.execute("ALTER TABLE users ADD COLUMN profile_image_path TEXT")

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, username: str, password: str, email: str) -> User:
        """Create a new user and return it with its assigned identifier."""

        if not password:
            raise ValueError("Password must not be empty")

        created_at = _current_timestamp()
        password_hash = _hash_password(password)

        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    """
                    INSERT INTO users (username, password_hash, email, profile_image_path, created_at)
                    VALUES (?, ?, ?, NULL, ?)
                    """,
                    (username, password_hash, email, _serialize_datetime(created_at)),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateUsernameError(
                    "That username is already taken",
                    details={"username": username},
                ) from exc

            user_id = cursor.lastrowid

        return User(
            id=int(user_id),
            username=username,
            email=email,
            created_at=created_at,
            profile_image_path=None,
        )

    def get_user(self, user_id: int) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def authenticate_user(self, username: str, password: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        if row is None:
            # Spend the same hashing work as a real check.
            _pwd_context.dummy_verify()
            return None
        stored_hash = row["password_hash"]
        if not stored_hash or not _verify_password(password, stored_hash):
            return None
        return self._row_to_user(row)

    def update_user(self, user: User) -> User:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET email = ?, profile_image_path = ? WHERE id = ?",
                (user.email, user.profile_image_path, user.id),
            )
            if cursor.rowcount == 0:
                raise UserNotFoundError("User not found", details={"user_id": user.id})

        refreshed = self.get_user(user.id)
        if refreshed is None:
            raise UserNotFoundError("User not found", details={"user_id": user.id})
        return refreshed

    def set_profile_image_path(self, user_id: int, image_path: Optional[str]) -> User:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET profile_image_path = ? WHERE id = ?",
                (image_path, user_id),
            )
            if cursor.rowcount == 0:
                raise UserNotFoundError("User not found", details={"user_id": user_id})

        refreshed = self.get_user(user_id)
        if refreshed is None:
            raise UserNotFoundError("User not found", details={"user_id": user_id})
        return refreshed

    def set_user_password(self, user_id: int, password: str) -> None:
        if not password:
            raise ValueError("Password must not be empty")
        password_hash = _hash_password(password)
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET password_hash = ? WHERE id = ?",
                (password_hash, user_id),
            )
            if cursor.rowcount == 0:
                raise UserNotFoundError("User not found", details={"user_id": user_id})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            username=str(row["username"]),
            email=str(row["email"]),
            profile_image_path=row["profile_image_path"],
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["Database"]

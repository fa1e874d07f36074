from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from blog.database import Database
from blog.models import UploadedImage
from blog.service import UserService
from blog.storage import ProfileImageStorage


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "blog.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads" / "profiles"


@pytest.fixture()
def storage(upload_dir: Path) -> ProfileImageStorage:
    return ProfileImageStorage(upload_dir)


@pytest.fixture()
def service(database: Database, storage: ProfileImageStorage) -> UserService:
    return UserService(database, storage)


@pytest.fixture()
def jpeg_image() -> UploadedImage:
    return UploadedImage(filename="photo.jpeg", content_type="image/jpeg", content=b"\xff" * 1024)

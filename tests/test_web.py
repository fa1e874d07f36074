from __future__ import annotations

import re
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from itsdangerous import BadSignature, TimestampSigner

from blog.config import Settings
from blog.validators import MAX_PROFILE_IMAGE_SIZE
from blog.web import create_app, requires_login

PASSWORD = "1234"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        upload_dir=tmp_path / "uploads" / "profiles",
        database_path=tmp_path / "blog.sqlite3",
        session_secret="not-so-secret",
    )


@pytest.fixture()
def client(settings: Settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def _join_and_login(client: TestClient, username: str = "ssar") -> dict:
    joined = client.post(
        "/join",
        json={"username": username, "password": PASSWORD, "email": f"{username}@nate.com"},
    )
    assert joined.status_code == 201
    login = client.post("/login", json={"username": username, "password": PASSWORD})
    assert login.status_code == 200
    return login.json()


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/board/1", False),
        ("/board/22", False),
        ("/board/save-form", True),
        ("/board", True),
        ("/user/update", True),
        ("/reply/3/delete", True),
        ("/login", False),
        ("/uploads/profiles/a.png", False),
    ],
)
def test_login_gate_paths(path: str, expected: bool) -> None:
    assert requires_login(path) is expected


def test_gate_rejects_anonymous_requests(client: TestClient) -> None:
    response = client.get("/user/me")
    assert response.status_code == 401
    assert response.json()["error"] == "LOGIN_REQUIRED"


def test_join_login_and_me(client: TestClient) -> None:
    user = _join_and_login(client)

    me = client.get("/user/me")
    assert me.status_code == 200
    assert me.json()["id"] == user["id"]
    assert me.json()["profile_image_path"] is None

    client.get("/logout")
    assert client.get("/user/me").status_code == 401


def test_duplicate_join_and_bad_login(client: TestClient) -> None:
    _join_and_login(client)

    duplicate = client.post(
        "/join",
        json={"username": "ssar", "password": PASSWORD, "email": "ssar@nate.com"},
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "DUPLICATE_USERNAME"

    bad = client.post("/login", json={"username": "ssar", "password": "nope"})
    assert bad.status_code == 400
    assert bad.json()["message"] == "Invalid username or password"


def test_update_profile_validation(client: TestClient) -> None:
    _join_and_login(client)

    rejected = client.post("/user/update", json={"password": "ab", "email": "a@b.c"})
    assert rejected.status_code == 400
    assert rejected.json()["error"] == "VALIDATION_FAILED"

    accepted = client.post("/user/update", json={"password": "abcd", "email": "new@nate.com"})
    assert accepted.status_code == 200
    assert accepted.json()["email"] == "new@nate.com"


def test_profile_image_lifecycle(client: TestClient, settings: Settings) -> None:
    _join_and_login(client)

    upload = client.post(
        "/user/profile-image",
        files={"profile_image": ("photo.jpeg", b"\xff" * 1024, "image/jpeg")},
    )
    assert upload.status_code == 200
    path = upload.json()["user"]["profile_image_path"]
    assert re.match(r"^/uploads/profiles/\d{8}_\d{6}_[0-9a-f]{8}\.jpeg$", path)
    assert upload.json()["warnings"] == []

    served = client.get(path)
    assert served.status_code == 200
    assert served.content == b"\xff" * 1024

    removed = client.post("/user/profile-image/delete")
    assert removed.status_code == 200
    assert removed.json()["user"]["profile_image_path"] is None
    assert list(settings.upload_dir.iterdir()) == []


def test_profile_image_requires_image_content_type(client: TestClient) -> None:
    _join_and_login(client)

    response = client.post(
        "/user/profile-image",
        files={"profile_image": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Only image files can be uploaded"


def test_profile_image_missing_file(client: TestClient) -> None:
    _join_and_login(client)

    response = client.post("/user/profile-image")
    assert response.status_code == 400
    assert response.json()["message"] == "Please select a profile image"


def test_profile_image_over_limit_is_rejected_before_storage(client: TestClient, settings: Settings) -> None:
    _join_and_login(client)

    response = client.post(
        "/user/profile-image",
        files={"profile_image": ("huge.jpeg", b"\x00" * (MAX_PROFILE_IMAGE_SIZE + 1), "image/jpeg")},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Profile images must be 20MB or smaller"
    assert response.json()["details"]["size"] == MAX_PROFILE_IMAGE_SIZE + 1
    assert list(settings.upload_dir.iterdir()) == []


def test_session_secret_argument_signs_the_cookie(settings: Settings) -> None:
    with TestClient(create_app(settings, session_secret="override-secret")) as client:
        _join_and_login(client)
        cookie = client.cookies["blog_session"]
        assert client.get("/user/me").status_code == 200

    TimestampSigner("override-secret").unsign(cookie)
    with pytest.raises(BadSignature):
        TimestampSigner(settings.session_secret).unsign(cookie)

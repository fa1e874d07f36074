from __future__ import annotations

from dataclasses import replace

import pytest

from blog.database import Database
from blog.errors import DuplicateUsernameError, UserNotFoundError


def test_create_and_authenticate_user(database: Database) -> None:
    user = database.create_user("ssar", "1234", "ssar@nate.com")

    assert user.id > 0
    assert user.profile_image_path is None
    assert database.get_user(user.id) == user
    assert database.get_user_by_username("ssar") == user

    assert database.authenticate_user("ssar", "1234") == user
    assert database.authenticate_user("ssar", "wrong") is None
    assert database.authenticate_user("nobody", "1234") is None


def test_passwords_are_stored_hashed(database: Database) -> None:
    user = database.create_user("cos", "1234", "cos@nate.com")
    with database._connect() as conn:
        stored = conn.execute("SELECT password_hash FROM users WHERE id = ?", (user.id,)).fetchone()[0]
    assert stored != "1234"
    assert stored.startswith("$pbkdf2-sha256$")
    assert database.authenticate_user("cos", "1234") == user


def test_duplicate_username_is_rejected(database: Database) -> None:
    database.create_user("ssar", "1234", "ssar@nate.com")
    with pytest.raises(DuplicateUsernameError):
        database.create_user("ssar", "5678", "other@nate.com")


def test_update_user_persists_fields(database: Database) -> None:
    user = database.create_user("ssar", "1234", "ssar@nate.com")

    updated = database.update_user(
        replace(user, email="new@nate.com", profile_image_path="/uploads/profiles/a.png")
    )

    assert updated.email == "new@nate.com"
    assert database.get_user(user.id).profile_image_path == "/uploads/profiles/a.png"


def test_set_profile_image_path_leaves_other_fields_alone(database: Database) -> None:
    user = database.create_user("ssar", "1234", "ssar@nate.com")
    database.update_user(replace(user, email="new@nate.com"))

    updated = database.set_profile_image_path(user.id, "/uploads/profiles/a.png")
    assert updated.email == "new@nate.com"
    assert updated.profile_image_path == "/uploads/profiles/a.png"

    cleared = database.set_profile_image_path(user.id, None)
    assert cleared.profile_image_path is None
    assert database.get_user(user.id).email == "new@nate.com"


def test_update_missing_user_raises(database: Database) -> None:
    user = database.create_user("ssar", "1234", "ssar@nate.com")
    with pytest.raises(UserNotFoundError):
        database.update_user(replace(user, id=user.id + 100))
    with pytest.raises(UserNotFoundError):
        database.set_user_password(user.id + 100, "abcd")
    with pytest.raises(UserNotFoundError):
        database.set_profile_image_path(user.id + 100, None)


def test_set_user_password(database: Database) -> None:
    user = database.create_user("ssar", "1234", "ssar@nate.com")
    database.set_user_password(user.id, "abcd")
    assert database.authenticate_user("ssar", "abcd") is not None
    assert database.authenticate_user("ssar", "1234") is None


def test_transaction_rolls_back_on_error(database: Database) -> None:
    user = database.create_user("ssar", "1234", "ssar@nate.com")

    with pytest.raises(RuntimeError):
        with database.transaction():
            database.update_user(replace(user, email="changed@nate.com"))
            raise RuntimeError("boom")

    assert database.get_user(user.id).email == "ssar@nate.com"


def test_nested_transactions_share_one_unit_of_work(database: Database) -> None:
    with database.transaction():
        with database.transaction():
            database.create_user("inner", "1234", "inner@nate.com")
        database.create_user("outer", "1234", "outer@nate.com")

    assert database.get_user_by_username("inner") is not None
    assert database.get_user_by_username("outer") is not None

from __future__ import annotations

from pathlib import Path

import pytest

from blog.config import DEFAULT_DATABASE_PATH, load_settings, resolve_config_path


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_settings_resolves_relative_paths(tmp_path: Path) -> None:
    config = _write(
        tmp_path / "blog.yaml",
        """
file:
  upload-dir: uploads/profiles
database:
  path: data/blog.sqlite3
session:
  secret: abc
  secure: true
""",
    )

    settings = load_settings(config, environ={})

    assert settings.upload_dir == (tmp_path / "uploads" / "profiles").resolve()
    assert settings.database_path == (tmp_path / "data" / "blog.sqlite3").resolve()
    assert settings.session_secret == "abc"
    assert settings.secure_cookies is True


def test_environment_overrides(tmp_path: Path) -> None:
    config = _write(
        tmp_path / "blog.yaml",
        "file:\n  upload-dir: /srv/uploads\nsession:\n  secret: abc\n",
    )

    settings = load_settings(
        config,
        environ={
            "BLOG_UPLOAD_DIR": str(tmp_path / "elsewhere"),
            "BLOG_SESSION_SECRET": "from-env",
            "BLOG_SESSION_SECURE": "no",
        },
    )

    assert settings.upload_dir == (tmp_path / "elsewhere").resolve()
    assert settings.database_path == DEFAULT_DATABASE_PATH.resolve()
    assert settings.session_secret == "from-env"
    assert settings.secure_cookies is False


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("session:\n  secret: abc\n", "file.upload-dir"),
        ("file:\n  upload-dir: /srv/uploads\n", "session.secret"),
        ("- just\n- a list\n", "mapping"),
    ],
)
def test_missing_settings_are_reported(tmp_path: Path, text: str, message: str) -> None:
    config = _write(tmp_path / "blog.yaml", text)
    with pytest.raises(ValueError, match=message):
        load_settings(config, environ={})


def test_resolve_config_path_prefers_environment(tmp_path: Path) -> None:
    assert resolve_config_path(str(tmp_path / "x.yaml")) == (tmp_path / "x.yaml").resolve()
    assert resolve_config_path(None).name == "blog.yaml"

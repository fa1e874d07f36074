"""Configuration management for the blog service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

ENV_CONFIG_PATH = "BLOG_CONFIG"
ENV_UPLOAD_DIR = "BLOG_UPLOAD_DIR"
ENV_DB_PATH = "BLOG_DB_PATH"
ENV_SESSION_SECRET = "BLOG_SESSION_SECRET"
ENV_SESSION_SECURE = "BLOG_SESSION_SECURE"

DEFAULT_DATABASE_PATH = Path(__file__).resolve().parent.parent / "data" / "blog.sqlite3"


def _resolve_path(raw: object, base_path: Path | None) -> Path:
    expanded = Path(str(raw)).expanduser()
    if expanded.is_absolute() or base_path is None:
        return expanded.resolve(strict=False)
    return (base_path / expanded).resolve(strict=False)


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in {"0", "false", "no", "off", ""}


def _section(data: Mapping[str, object], name: str) -> Dict[str, object]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the blog service."""

    upload_dir: Path
    database_path: Path
    session_secret: str
    secure_cookies: bool = False

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from the raw YAML document."""

        file_section = _section(data, "file")
        database_section = _section(data, "database")
        session_section = _section(data, "session")

        upload_dir = file_section.get("upload-dir")
        if not upload_dir:
            raise ValueError("Configuration must define 'file.upload-dir'")

        secret = session_section.get("secret")
        if not secret:
            raise ValueError("Configuration must define 'session.secret'")

        raw_db_path = database_section.get("path")
        database_path = _resolve_path(raw_db_path or DEFAULT_DATABASE_PATH, base_path)

        return Settings(
            upload_dir=_resolve_path(upload_dir, base_path),
            database_path=database_path,
            session_secret=str(secret),
            secure_cookies=_parse_bool(session_section.get("secure", False)),
        )

    def with_environment(self, environ: Mapping[str, str] | None = None) -> "Settings":
        """Return a copy with ``BLOG_*`` environment overrides applied."""

        env = os.environ if environ is None else environ
        overrides: Dict[str, object] = {}
        if env.get(ENV_UPLOAD_DIR):
            overrides["upload_dir"] = _resolve_path(env[ENV_UPLOAD_DIR], None)
        if env.get(ENV_DB_PATH):
            overrides["database_path"] = _resolve_path(env[ENV_DB_PATH], None)
        if env.get(ENV_SESSION_SECRET):
            overrides["session_secret"] = env[ENV_SESSION_SECRET]
        if env.get(ENV_SESSION_SECURE) is not None:
            overrides["secure_cookies"] = _parse_bool(env[ENV_SESSION_SECURE])
        return replace(self, **overrides) if overrides else self


def load_settings(config_path: Path, environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from a YAML file and apply environment overrides."""
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")

    settings = Settings.from_dict(raw, base_path=config_path.parent)
    return settings.with_environment(environ)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "blog.yaml").resolve(strict=False)
    return candidate


__all__ = ["DEFAULT_DATABASE_PATH", "Settings", "load_settings", "resolve_config_path"]

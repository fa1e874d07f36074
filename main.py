"""Command-line interface for the blog account service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from getpass import getpass
from typing import Sequence

from blog.config import ENV_CONFIG_PATH, Settings, load_settings, resolve_config_path
from blog.database import Database
from blog.errors import BlogError
from blog.service import UserService
from blog.storage import ProfileImageStorage
from blog.validators import JoinRequest

logger = logging.getLogger("blog.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Blog account service utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration (default: BLOG_CONFIG or config/blog.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Create the database tables and upload directory")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port (default: 8080)")

    create_parser = subparsers.add_parser("create-user", help="Register a user from the terminal")
    create_parser.add_argument("username", help="Unique username for login")
    create_parser.add_argument("email", help="Contact email address")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user"}

    # Global options may precede the sub-command; bare options imply "serve".
    global_args: list[str] = []
    while args_list and args_list[0] == "--config":
        global_args.extend(args_list[:2])
        args_list = args_list[2:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args([*global_args, *args_list])
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args([*global_args, *args_list])
            args_list = ["serve", *args_list]

    return parser.parse_args([*global_args, *args_list])


def _load_settings(config: str | None) -> Settings:
    config_path = resolve_config_path(config or os.getenv(ENV_CONFIG_PATH))
    return load_settings(config_path)


def _initialise(settings: Settings) -> tuple[Database, ProfileImageStorage]:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)

    storage = ProfileImageStorage(settings.upload_dir)
    storage.ensure_directory()
    logger.info("Profile images are stored in %s", settings.upload_dir)
    return database, storage


def _prompt_for_password() -> str:
    for _ in range(3):
        password = getpass("Password: ")
        confirm = getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def _create_user(service: UserService, *, username: str, email: str) -> int:
    password = _prompt_for_password()
    try:
        user = service.join(JoinRequest(username=username, password=password, email=email))
    except BlogError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    print(f"Created user #{user.id}: {user.username} <{user.email}>")
    return 0


def _serve(settings: Settings, database: Database, storage: ProfileImageStorage, *, host: str, port: int) -> None:
    from blog.web import create_app
    import uvicorn

    logger.info("Starting blog service on http://%s:%s", host, port)
    app = create_app(settings, database=database, storage=storage)
    uvicorn.run(app, host=host, port=port, log_level="info")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = _load_settings(args.config)
    except (OSError, ValueError) as exc:
        print(f"Unable to load configuration: {exc}", file=sys.stderr)
        return 2

    database, storage = _initialise(settings)

    if args.command == "serve":
        _serve(settings, database, storage, host=args.host, port=args.port)
    elif args.command == "create-user":
        return _create_user(
            UserService(database, storage),
            username=args.username,
            email=args.email,
        )
    elif args.command == "init-db":
        print("Database initialisation complete.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

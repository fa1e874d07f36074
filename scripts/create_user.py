import argparse
import getpass
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from blog.config import ENV_CONFIG_PATH, load_settings, resolve_config_path
from blog.database import Database
from blog.errors import BlogError
from blog.service import UserService
from blog.storage import ProfileImageStorage
from blog.validators import JoinRequest


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a blog user")
    parser.add_argument("username", help="Unique username for login")
    parser.add_argument("email", help="Contact email address")
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to the YAML configuration (defaults to BLOG_CONFIG or config/blog.yaml)",
    )
    return parser.parse_args()


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main() -> int:
    args = parse_args()
    password = prompt_for_password()

    settings = load_settings(resolve_config_path(args.config_path or os.getenv(ENV_CONFIG_PATH)))
    database = Database(settings.database_path)
    database.initialize()
    service = UserService(database, ProfileImageStorage(settings.upload_dir))

    try:
        user = service.join(
            JoinRequest(username=args.username, password=password, email=args.email)
        )
    except BlogError as exc:  # duplicates, invalid email, etc.
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.username} <{user.email}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

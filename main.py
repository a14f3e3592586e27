#!/usr/bin/env python3
"""
Marketplace API -- administrative command line.

Usage:
  python main.py create-admin
  python main.py create-admin --email admin@example.com --password admin123
  python main.py create-admin --email ops@example.com --password s3cret! --name "Ops Team"

create-admin creates an admin account, or, if the email is already registered,
promotes that account to admin and replaces its password hash. It is the only
way to obtain the first admin: registration through the API always creates
regular users.

Environment variables (see core/config.py):
  DATABASE_URL   Where accounts are stored. Defaults to ./marketplace.db.
  SECRET_KEY     Required unless DEBUG=true.
"""

import argparse
import sys

from auth.identity import IdentityService
from auth.store import UserStore
from core.config import get_settings
from core.errors import ValidationError


def _create_admin(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        user = IdentityService(store, settings).ensure_admin(args.name, args.email, args.password)
    except ValidationError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 1
    finally:
        store.close()

    print("  Admin account ready")
    print(f"  Email:    {user.email}")
    print(f"  Role:     {user.role.value}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Marketplace API administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    commands = parser.add_subparsers(dest="command", required=True)

    create_admin = commands.add_parser("create-admin", help="Create or reset an admin account")
    create_admin.add_argument("--email", default="admin@example.com", help="Admin login email")
    create_admin.add_argument("--password", default="admin123", help="Admin password")
    create_admin.add_argument("--name", default="Admin User", help="Display name")
    create_admin.set_defaults(handler=_create_admin)

    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())

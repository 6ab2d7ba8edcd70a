#!/usr/bin/env python3
"""
Library API -- administrative command line.

Self-registration over HTTP always creates role "user". Admin accounts, and
hand-provisioned password material, come from here.

Usage:
  python main.py create-admin --username root --email root@example.org
  python main.py create-admin --username root --email root@example.org --password 's3cret'
  python main.py hash-password

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the user database (default: ./library.db)
  JWT_SECRET    Not needed by these commands; read only by the API server.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from auth import service
from auth.models import Role
from auth.passwords import generate_salt, hash_password
from auth.store import UserStore

logger = logging.getLogger("libraryapi.cli")


def _database_url(explicit: Optional[str]) -> str:
    if explicit:
        return explicit
    # Imported lazily: Settings validation requires JWT_SECRET (or DEBUG), which
    # is irrelevant when --database-url is given.
    from core.config import get_settings

    return get_settings().database_url


def _prompt_password() -> str:
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.", file=sys.stderr)
        sys.exit(1)
    return first


def create_admin(args: argparse.Namespace) -> int:
    password = args.password or _prompt_password()
    store = UserStore(_database_url(args.database_url))
    try:
        result = service.register(store, args.username, args.email, password, role=Role.ADMIN.value)
    finally:
        store.close()
    if not result.ok:
        print(f"  [!] {result.error.message} ({result.error.code})", file=sys.stderr)
        return 1
    print(f"Admin '{result.value.username}' created (id {result.value.id}).")
    return 0


def print_password_hash(args: argparse.Namespace) -> int:
    password = args.password or _prompt_password()
    salt = generate_salt()
    print(f"salt:   {salt}")
    print(f"digest: {hash_password(password, salt)}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="library-api",
        description="Administrative commands for the Library API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin --username root --email root@example.org
  DATABASE_URL=sqlite:///prod.db python main.py create-admin --username ops --email ops@example.org
  python main.py hash-password
        """,
    )
    parser.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )
    sub = parser.add_subparsers(dest="command")

    admin = sub.add_parser("create-admin", help="Create an account with the admin role")
    admin.add_argument("--username", required=True)
    admin.add_argument("--email", required=True)
    admin.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted; avoid passing it on shared hosts)",
    )
    admin.set_defaults(handler=create_admin)

    hasher = sub.add_parser("hash-password", help="Print a fresh salt and digest for a password")
    hasher.add_argument("--password", default=None)
    hasher.set_defaults(handler=print_password_hash)

    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        return 0

    logging.basicConfig(level=logging.WARNING, format="%(levelname)-5s %(name)s %(message)s")
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())

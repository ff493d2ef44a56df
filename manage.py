#!/usr/bin/env python3
"""
Maintenance commands for the Service Catalog database.

Usage:
    python manage.py init-db
    python manage.py seed
    python manage.py fill-trees
    python manage.py fix-providers
    python manage.py reset-password --email admin@example.com [--password "NewStrongPass!234"]
    python manage.py create-token --email admin@example.com [--days 365]

The database is the one named by ``DATABASE_URL``.  ``reset-password``
never reads or reveals existing passwords; if ``--password`` is omitted
you will be prompted for it.
"""

import argparse
import asyncio
import getpass
import logging
import sys

from service_catalog_api.app.core.config import settings
from service_catalog_api.app.core.db import get_database_path, init_db
from service_catalog_api.app.core.logging_config import setup_logging
from service_catalog_api.app.core.sample_data import create_sample_services, fill_missing_trees, fix_missing_providers
from service_catalog_api.app.core.security import create_access_token
from service_catalog_api.app.services.user_service import UserService

logger = logging.getLogger("manage")


def cmd_init_db(args: argparse.Namespace) -> int:
    init_db()
    print(f"[+] Database ready: {get_database_path()}")
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    init_db()
    service_ids = create_sample_services()
    print(f"[+] Created sample services: {', '.join(str(i) for i in service_ids)}")
    return 0


def cmd_fill_trees(args: argparse.Namespace) -> int:
    init_db()
    count = fill_missing_trees()
    print(f"[+] Added default trees to {count} service(s)")
    return 0


def cmd_fix_providers(args: argparse.Namespace) -> int:
    init_db()
    count = fix_missing_providers()
    print(f"[+] Created {count} missing provider record(s)")
    return 0


def cmd_reset_password(args: argparse.Namespace) -> int:
    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        return 1
    if not asyncio.run(UserService.set_password(args.email, new_password)):
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        return 2
    print(f"[+] Password updated for user: {args.email}")
    return 0


def cmd_create_token(args: argparse.Namespace) -> int:
    print(create_access_token({"sub": args.email}, expires_delta=args.days * 24 * 60 * 60))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Service Catalog maintenance commands.")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the database and apply migrations").set_defaults(func=cmd_init_db)
    sub.add_parser("seed", help="Insert the sample broadband and business services").set_defaults(func=cmd_seed)
    sub.add_parser("fill-trees", help="Give services without a tree their default tree").set_defaults(
        func=cmd_fill_trees
    )
    sub.add_parser("fix-providers", help="Create provider records missing for provider accounts").set_defaults(
        func=cmd_fix_providers
    )

    reset = sub.add_parser("reset-password", help="Set a new password for a user")
    reset.add_argument("--email", required=True, help="User email to update")
    reset.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    reset.set_defaults(func=cmd_reset_password)

    token = sub.add_parser("create-token", help="Print a long-lived access token for a user")
    token.add_argument("--email", required=True, help="E-mail the token is issued for")
    token.add_argument("--days", type=int, default=365, help="Token lifetime in days")
    token.set_defaults(func=cmd_create_token)
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level, settings.log_file or None)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

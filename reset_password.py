#!/usr/bin/env python3
"""
Reset a user's password in the DevCamper SQLite database.

This script DOES NOT read or reveal any existing passwords.  It simply
sets a new password hash (PBKDF2-HMAC-SHA256, format "salthex$hashhex")
for the specified user email and clears any pending reset token.

Usage:
    python reset_password.py --db ./devcamper.db --email admin@devcamper.io --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sys

from devcamper_api.app.core.db import SQLiteDocumentStore
from devcamper_api.app.core.query import EQ, Condition
from devcamper_api.app.core.security import hash_password
from devcamper_api.app.core.store import USERS


def main() -> None:
    ap = argparse.ArgumentParser(description="Reset DevCamper user password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./devcamper.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < 6:
        print("[!] Password must be at least 6 characters.", file=sys.stderr)
        sys.exit(1)

    store = SQLiteDocumentStore(os.path.abspath(args.db))
    users = store.find_all(USERS, (Condition("email", EQ, args.email.lower()),))
    if not users:
        print(f"[!] No user found with email: {args.email}", file=sys.stderr)
        sys.exit(2)

    store.update(
        USERS,
        users[0]["id"],
        {"password": hash_password(new_password)},
        unset=("resetPasswordToken", "resetPasswordExpire"),
    )
    print(f"[+] Password updated for user: {args.email}")


if __name__ == "__main__":
    main()

"""Print an access token for an existing user.

Usage:
    python create_token.py <user id> [--days 365]
"""
import argparse

from devcamper_api.app.core.security import create_access_token


def main() -> None:
    ap = argparse.ArgumentParser(description="Issue a DevCamper API access token for a user id.")
    ap.add_argument("user_id", help="Id of the user the token is issued for")
    ap.add_argument("--days", type=int, default=365, help="Token lifetime in days (default: 365)")
    args = ap.parse_args()
    print(create_access_token({"sub": args.user_id}, expires_delta=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()

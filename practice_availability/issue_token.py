"""Print a bearer token for an existing user to stdout.

Usage:
    python -m practice_availability.issue_token someone@example.com [--minutes 120]
"""
import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from practice_availability.auth.jwt_handler import create_access_token
from practice_availability.database import SessionLocal
from practice_availability.models.user import User


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Issue an access token for a user.")
    parser.add_argument("email")
    parser.add_argument("--minutes", type=int, default=None, help="token lifetime in minutes")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email).first()
    except SQLAlchemyError as exc:
        print(f"Could not load user: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    if user is None or not user.is_active:
        print(f"No active user with email {args.email}", file=sys.stderr)
        sys.exit(1)

    print(create_access_token(subject=user.id, role=user.role, expires_minutes=args.minutes))


if __name__ == "__main__":
    main()

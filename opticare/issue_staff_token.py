"""Print a bearer token for an existing staff user.

Usage:
    python -m opticare.issue_staff_token staff@example.com
"""
import argparse
import sys

from opticare.auth.jwt_handler import create_access_token
from opticare.database import SessionLocal
from opticare.models.user import User


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("email")
    parser.add_argument("--expires-minutes", type=int, default=None)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email.strip().lower()).first()
    finally:
        db.close()

    if user is None:
        print(f"No staff user with email {args.email}", file=sys.stderr)
        sys.exit(1)

    print(create_access_token(subject=user.email, role=user.role or "staff", expires_minutes=args.expires_minutes))


if __name__ == "__main__":
    main()

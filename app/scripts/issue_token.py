"""
Print a JWT access token for an existing user. Run from project root:
  python -m app.scripts.issue_token USER_ID
Use it as: Authorization: Bearer <token> (only checked when AUTH_ENABLED=true).
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.security import create_access_token
from app.models import User


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Issue a Roster API token for a user.")
    parser.add_argument("user_id", type=int, help="Id of an existing user")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.id == args.user_id).first()
        if user is None:
            print(f"User {args.user_id} does not exist.", file=sys.stderr)
            return 1
        print(create_access_token(sub=user.id, email=user.email))
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

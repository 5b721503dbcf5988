from __future__ import annotations

import argparse

from villa_booking.core.security import hash_password
from villa_booking.db.session import SessionLocal
from villa_booking.models.user import ROLE_ADMIN
from villa_booking.services.auth_service import get_user_by_email, register_user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or reset an administrator account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--password", required=True)

    args = parser.parse_args()

    db = SessionLocal()
    try:
        u = get_user_by_email(db, args.email)
        if u is None:
            u = register_user(db, email=args.email, name=args.name, password=args.password, role=ROLE_ADMIN)
            print(f"Created admin: {u.email}")
            return 0

        u.name = args.name
        u.hashed_password = hash_password(args.password)
        u.is_active = True
        u.role = ROLE_ADMIN
        db.commit()
        print(f"Updated admin: {u.email}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())

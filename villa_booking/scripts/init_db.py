from __future__ import annotations

from villa_booking.db.base import Base
from villa_booking.db.session import engine

# Import models to register with SQLAlchemy
import villa_booking.models  # noqa: F401


def main() -> int:
    # The bookings overlap guard (PostgreSQL exclusion constraint or SQLite
    # triggers) is attached to table creation
    Base.metadata.create_all(bind=engine)

    print("DB initialized")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

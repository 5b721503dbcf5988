from __future__ import annotations

from villa_booking.db.session import SessionLocal
from villa_booking.services.audit_service import write_audit_log
from villa_booking.services.booking_service import complete_finished_bookings


def main() -> int:
    db = SessionLocal()
    try:
        completed = complete_finished_bookings(db)
        if not completed:
            print("no_targets")
            return 0

        for b in completed:
            write_audit_log(
                db,
                actor_user_id=None,
                action_type="BOOKING_AUTO_COMPLETE",
                target_type="booking",
                target_id=b.id,
                summary="Marked finished stay as completed",
                diff_json={"reference": b.reference},
                request=None,
            )

        print(f"completed: {len(completed)}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())

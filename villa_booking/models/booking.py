from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DDL, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from villa_booking.db.base import Base
from villa_booking.models._mixins import TimestampMixin

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELLED = "cancelled"
STATUS_COMPLETED = "completed"
BOOKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_COMPLETED)
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)

# Name shared by the PostgreSQL exclusion constraint and the SQLite triggers,
# used to recognise overlap violations in IntegrityError messages.
OVERLAP_CONSTRAINT = "bookings_no_overlap"
REFERENCE_CONSTRAINT = "uq_bookings_reference"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_bookings_date_range"),
        CheckConstraint("guests > 0", name="ck_bookings_guests_positive"),
        CheckConstraint("total_price >= 0", name="ck_bookings_total_non_negative"),
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in BOOKING_STATUSES) + ")",
            name="ck_bookings_status",
        ),
        UniqueConstraint("reference", name=REFERENCE_CONSTRAINT),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    reference: Mapped[str] = mapped_column(String(32), nullable=False)

    property_id: Mapped[str] = mapped_column(String(36), ForeignKey("villas.id"), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True, index=True)

    guest_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guest_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    guest_phone: Mapped[str] = mapped_column(String(32), nullable=False)

    # Stay is the half-open interval [check_in, check_out)
    check_in: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_out: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    guests: Mapped[int] = mapped_column(Integer, nullable=False)

    # Snapshot taken at booking time; never recomputed
    total_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_CONFIRMED, index=True)
    special_request: Mapped[str | None] = mapped_column(Text, nullable=True)

    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    property: Mapped["Property"] = relationship("Property")


# Storage-level guard: two confirmed bookings of one villa may never overlap.
event.listen(
    Booking.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"""
        ALTER TABLE bookings
        ADD CONSTRAINT {OVERLAP_CONSTRAINT}
        EXCLUDE USING gist (
            property_id WITH =,
            daterange(check_in, check_out, '[)') WITH &&
        )
        WHERE (status = 'confirmed')
        """
    ).execute_if(dialect="postgresql"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"""
        CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT}_insert
        BEFORE INSERT ON bookings
        WHEN NEW.status = 'confirmed'
        BEGIN
            SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT}')
            WHERE EXISTS (
                SELECT 1 FROM bookings
                WHERE property_id = NEW.property_id
                  AND status = 'confirmed'
                  AND check_in < NEW.check_out
                  AND check_out > NEW.check_in
            );
        END
        """
    ).execute_if(dialect="sqlite"),
)
event.listen(
    Booking.__table__,
    "after_create",
    DDL(
        f"""
        CREATE TRIGGER IF NOT EXISTS {OVERLAP_CONSTRAINT}_update
        BEFORE UPDATE OF status, check_in, check_out, property_id ON bookings
        WHEN NEW.status = 'confirmed'
        BEGIN
            SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT}')
            WHERE EXISTS (
                SELECT 1 FROM bookings
                WHERE property_id = NEW.property_id
                  AND id != NEW.id
                  AND status = 'confirmed'
                  AND check_in < NEW.check_out
                  AND check_out > NEW.check_in
            );
        END
        """
    ).execute_if(dialect="sqlite"),
)

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from villa_booking.core.errors import (
    BlackedOutError,
    BookingError,
    CapacityExceededError,
    ConflictError,
    InvalidDateRangeError,
    NotFoundError,
)
from villa_booking.models.blackout_date import BlackoutDate
from villa_booking.models.booking import STATUS_CONFIRMED, Booking
from villa_booking.models.property import Property


@dataclass
class AvailabilityResult:
    available: bool
    reason: str | None = None
    message: str = ""
    property: Property | None = None


def get_active_property(db: Session, property_id: str, *, lock: bool = False) -> Property:
    q = select(Property).where(Property.id == property_id)
    if lock:
        # Serializes booking writers per villa (no-op on SQLite)
        q = q.with_for_update()
    prop = db.execute(q).scalar_one_or_none()
    if prop is None or not prop.is_active:
        raise NotFoundError("Villa not found")
    return prop


def _has_blackout(db: Session, property_id: str, check_in: date, check_out: date) -> bool:
    q = (
        select(BlackoutDate.id)
        .where(BlackoutDate.property_id == property_id)
        .where(BlackoutDate.date >= check_in)
        .where(BlackoutDate.date <= check_out)
        .limit(1)
    )
    return db.execute(q).first() is not None


def _has_overlapping_booking(
    db: Session,
    property_id: str,
    check_in: date,
    check_out: date,
    exclude_booking_id: str | None = None,
) -> bool:
    q = (
        select(Booking.id)
        .where(Booking.property_id == property_id)
        .where(Booking.status == STATUS_CONFIRMED)
        .where(Booking.check_in < check_out)
        .where(Booking.check_out > check_in)
    )
    if exclude_booking_id:
        q = q.where(Booking.id != exclude_booking_id)
    q = q.limit(1)
    return db.execute(q).first() is not None


def ensure_available(
    db: Session,
    *,
    property_id: str,
    check_in: date,
    check_out: date,
    guests: int,
    lock: bool = False,
    exclude_booking_id: str | None = None,
) -> Property:
    """Raise the typed error for the first rule the stay breaks.

    Checks run in a fixed order: villa exists, capacity, date range,
    blackout dates, then confirmed bookings on the half-open interval
    [check_in, check_out).
    """
    prop = get_active_property(db, property_id, lock=lock)

    if guests > prop.max_guests:
        raise CapacityExceededError(
            f"Number of guests exceeds the villa capacity (maximum {prop.max_guests} guests)",
            max_guests=prop.max_guests,
        )

    if check_out <= check_in:
        raise InvalidDateRangeError()

    if _has_blackout(db, prop.id, check_in, check_out):
        raise BlackedOutError()

    if _has_overlapping_booking(db, prop.id, check_in, check_out, exclude_booking_id=exclude_booking_id):
        raise ConflictError()

    return prop


def check_availability(
    db: Session,
    *,
    property_id: str,
    check_in: date,
    check_out: date,
    guests: int,
) -> AvailabilityResult:
    """Advisory check; booking creation re-runs ensure_available inside its transaction."""
    try:
        prop = ensure_available(db, property_id=property_id, check_in=check_in, check_out=check_out, guests=guests)
    except BookingError as exc:
        if exc.status_code >= 500:
            raise
        return AvailabilityResult(available=False, reason=exc.code, message=exc.message)
    return AvailabilityResult(available=True, property=prop)


def list_unavailable_dates(db: Session, *, property_id: str, from_date: date, to_date: date) -> dict:
    """Blackout dates and confirmed stays overlapping the window, for calendar display."""
    prop = get_active_property(db, property_id)

    blackouts = db.execute(
        select(BlackoutDate.date)
        .where(BlackoutDate.property_id == prop.id)
        .where(BlackoutDate.date >= from_date)
        .where(BlackoutDate.date <= to_date)
        .order_by(BlackoutDate.date)
    ).scalars().all()

    stays = db.execute(
        select(Booking.check_in, Booking.check_out)
        .where(Booking.property_id == prop.id)
        .where(Booking.status == STATUS_CONFIRMED)
        .where(Booking.check_in <= to_date)
        .where(Booking.check_out > from_date)
        .order_by(Booking.check_in)
    ).all()

    return {
        "villa_id": prop.id,
        "blackout_dates": list(blackouts),
        "booked_ranges": [{"check_in": ci, "check_out": co} for ci, co in stays],
    }

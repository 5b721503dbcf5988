from __future__ import annotations

import logging
import secrets
import string
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterator
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from villa_booking.core.config import get_settings
from villa_booking.core.errors import (
    AlreadyCancelledError,
    BookingError,
    ConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
    PriceMismatchError,
    ServiceUnavailableError,
    TooLateToCancelError,
)
from villa_booking.db.session import translate_db_errors
from villa_booking.models.booking import (
    OVERLAP_CONSTRAINT,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_PENDING,
    Booking,
)
from villa_booking.models.user import User
from villa_booking.services.availability_service import ensure_available
from villa_booking.services.notification_service import (
    BookingSummary,
    NotificationFlags,
    dispatch_booking_notifications,
)
from villa_booking.services.pricing_service import price_stay

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
    STATUS_CONFIRMED: {STATUS_CANCELLED, STATUS_COMPLETED},
    STATUS_CANCELLED: set(),
    STATUS_COMPLETED: set(),
}


@dataclass
class BookingRequest:
    property_id: str
    guest_name: str
    guest_email: str
    guest_phone: str
    check_in: date
    check_out: date
    guests: int
    total_price: Decimal
    special_request: str | None = None


@dataclass
class BookingPlacement:
    booking: Booking
    villa_name: str
    notifications: NotificationFlags


def local_today() -> date:
    return datetime.now(ZoneInfo(get_settings().timezone)).date()


def generate_booking_reference() -> str:
    # Example: VIL-20250601-K3ZQ8A
    date_part = datetime.now(timezone.utc).strftime("%Y%m%d")
    rand = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(6))
    return f"VIL-{date_part}-{rand}"


def _is_overlap_violation(exc: IntegrityError) -> bool:
    return OVERLAP_CONSTRAINT in str(exc.orig)


def _is_reference_collision(exc: IntegrityError) -> bool:
    return "reference" in str(exc.orig)


@contextmanager
def _write(db: Session) -> Iterator[None]:
    """Roll back on any business-rule failure so row locks are released."""
    with translate_db_errors(db):
        try:
            yield
        except BookingError:
            db.rollback()
            raise


def _reserve(db: Session, request: BookingRequest, *, user_id: str | None) -> Booking:
    settings = get_settings()

    prop = ensure_available(
        db,
        property_id=request.property_id,
        check_in=request.check_in,
        check_out=request.check_out,
        guests=request.guests,
        lock=True,
    )

    server_quote = price_stay(db, prop, check_in=request.check_in, check_out=request.check_out, guests=request.guests)
    if abs(request.total_price - server_quote.total) > settings.price_tolerance:
        raise PriceMismatchError(
            quoted_total=float(request.total_price),
            expected_total=float(server_quote.total),
        )

    booking = Booking(
        reference=generate_booking_reference(),
        property_id=prop.id,
        user_id=user_id,
        guest_name=request.guest_name,
        guest_email=request.guest_email,
        guest_phone=request.guest_phone,
        check_in=request.check_in,
        check_out=request.check_out,
        guests=request.guests,
        total_price=request.total_price,
        status=STATUS_CONFIRMED,
        special_request=request.special_request or None,
    )
    db.add(booking)
    db.flush()
    return booking


def create_booking(db: Session, request: BookingRequest, *, user_id: str | None = None) -> Booking:
    """Instant-book a stay.

    Availability is re-checked with the villa row locked, the caller's total
    is verified against a fresh server quote, and the insert is guarded by the
    storage-level overlap constraint. A losing concurrent writer gets
    ConflictError, never a double booking.
    """
    attempts = max(1, get_settings().booking_reference_attempts)

    for attempt in range(1, attempts + 1):
        with _write(db):
            try:
                booking = _reserve(db, request, user_id=user_id)
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                if _is_overlap_violation(exc):
                    logger.info("Overlap guard rejected booking for villa %s (%s..%s)", request.property_id, request.check_in, request.check_out)
                    raise ConflictError() from exc
                if _is_reference_collision(exc) and attempt < attempts:
                    logger.warning("Booking reference collision on attempt %d; retrying", attempt)
                    continue
                logger.error("Booking insert failed: %s", exc)
                raise ServiceUnavailableError("Booking could not be saved, please retry") from exc

        logger.info("Booking %s created for villa %s", booking.reference, booking.property_id)
        return booking

    raise ServiceUnavailableError("Booking could not be saved, please retry")


def summarize(booking: Booking, villa_name: str) -> BookingSummary:
    return BookingSummary(
        reference=booking.reference,
        villa_name=villa_name,
        guest_name=booking.guest_name,
        guest_email=booking.guest_email,
        guest_phone=booking.guest_phone,
        check_in=booking.check_in,
        check_out=booking.check_out,
        guests=booking.guests,
        total_price=booking.total_price,
        special_request=booking.special_request,
    )


def place_booking(db: Session, request: BookingRequest, *, user_id: str | None = None, notifier=None) -> BookingPlacement:
    """Create the booking, then notify guest and admin without affecting the result."""
    booking = create_booking(db, request, user_id=user_id)
    villa_name = booking.property.name
    flags = dispatch_booking_notifications(summarize(booking, villa_name), notifier=notifier)
    return BookingPlacement(booking=booking, villa_name=villa_name, notifications=flags)


def get_booking(db: Session, booking_id: str) -> Booking:
    with translate_db_errors(db):
        booking = db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def lookup_booking(db: Session, *, reference: str, email: str) -> Booking:
    with translate_db_errors(db):
        booking = db.execute(
            select(Booking)
            .where(Booking.reference == reference.strip().upper())
            .where(func.lower(Booking.guest_email) == email.strip().lower())
        ).scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def list_bookings_for_user(db: Session, user: User) -> list[Booking]:
    q = (
        select(Booking)
        .where(or_(Booking.user_id == user.id, func.lower(Booking.guest_email) == user.email.lower()))
        .order_by(Booking.created_at.desc())
    )
    with translate_db_errors(db):
        return list(db.execute(q).scalars().all())


def cancel_booking(db: Session, booking_id: str, *, today: date | None = None) -> Booking:
    """Guest cancellation: only before the check-in date (date-only, local timezone)."""
    today = today or local_today()

    with _write(db):
        booking = db.execute(select(Booking).where(Booking.id == booking_id).with_for_update()).scalar_one_or_none()
        if booking is None:
            raise NotFoundError("Booking not found")
        if booking.status == STATUS_CANCELLED:
            raise AlreadyCancelledError()
        if booking.status == STATUS_COMPLETED or booking.check_in <= today:
            raise TooLateToCancelError()

        booking.status = STATUS_CANCELLED
        booking.cancelled_at = datetime.now(timezone.utc)
        db.commit()

    logger.info("Booking %s cancelled by guest", booking.reference)
    return booking


def update_booking(db: Session, booking_id: str, changes: dict[str, Any]) -> Booking:
    """Administrative edit of status and special request.

    Status moves must follow the booking state machine; moving a booking to
    confirmed re-checks availability against the other confirmed stays.
    """
    with _write(db):
        booking = db.execute(select(Booking).where(Booking.id == booking_id).with_for_update()).scalar_one_or_none()
        if booking is None:
            raise NotFoundError("Booking not found")

        new_status = changes.get("status")
        if new_status is not None and new_status != booking.status:
            if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
                raise InvalidStatusTransitionError(
                    f"Cannot change booking status from {booking.status} to {new_status}"
                )
            if new_status == STATUS_CONFIRMED:
                ensure_available(
                    db,
                    property_id=booking.property_id,
                    check_in=booking.check_in,
                    check_out=booking.check_out,
                    guests=booking.guests,
                    lock=True,
                    exclude_booking_id=booking.id,
                )
            if new_status == STATUS_CANCELLED:
                booking.cancelled_at = datetime.now(timezone.utc)
            booking.status = new_status

        if "special_request" in changes:
            booking.special_request = changes["special_request"] or None

        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if _is_overlap_violation(exc):
                raise ConflictError() from exc
            raise

    logger.info("Booking %s updated (%s)", booking.reference, ", ".join(sorted(changes)))
    return booking


def complete_finished_bookings(db: Session, *, today: date | None = None) -> list[Booking]:
    """Move confirmed stays whose check-out has passed to completed."""
    today = today or local_today()
    with translate_db_errors(db):
        targets = db.execute(
            select(Booking).where(Booking.status == STATUS_CONFIRMED, Booking.check_out <= today)
        ).scalars().all()
        for booking in targets:
            booking.status = STATUS_COMPLETED
        db.commit()
    return list(targets)

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from villa_booking.core.deps import get_db, get_optional_user
from villa_booking.core.errors import ValidationError
from villa_booking.models.user import User
from villa_booking.schemas.booking import (
    BookingCancelled,
    BookingCreate,
    BookingCreated,
    AvailabilityOut,
    BookingOut,
    NotificationFlagsOut,
    QuoteOut,
    QuoteRequest,
    UnavailableDatesOut,
)
from villa_booking.schemas.common import paginate
from villa_booking.schemas.property import PropertyListResponse, PropertyOut, PropertySummary
from villa_booking.services.audit_service import write_audit_log
from villa_booking.services.availability_service import check_availability, list_unavailable_dates
from villa_booking.services.booking_service import (
    BookingRequest,
    cancel_booking,
    get_booking,
    local_today,
    lookup_booking,
    place_booking,
)
from villa_booking.services.notification_service import get_notifier
from villa_booking.services.pricing_service import quote as quote_stay
from villa_booking.services.property_service import get_public_property_by_slug, search_properties

router = APIRouter()

CALENDAR_WINDOW_DAYS = 366


@router.get("/villas", response_model=PropertyListResponse)
def list_villas(
    search: str | None = None,
    location: str | None = None,
    guests: int | None = Query(default=None, ge=1),
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
    db: Session = Depends(get_db),
):
    villas, total = search_properties(
        db,
        search=search,
        location=location,
        guests=guests,
        min_price=min_price,
        max_price=max_price,
        page=page,
        limit=limit,
    )
    return PropertyListResponse(
        villas=[PropertySummary.model_validate(v) for v in villas],
        pagination=paginate(page, limit, total),
    )


@router.get("/villas/{slug}", response_model=PropertyOut)
def get_villa(slug: str, db: Session = Depends(get_db)):
    return get_public_property_by_slug(db, slug)


@router.get("/villas/{villa_id}/unavailable-dates", response_model=UnavailableDatesOut)
def unavailable_dates(
    villa_id: str,
    from_date: date | None = None,
    to_date: date | None = None,
    db: Session = Depends(get_db),
):
    from_date = from_date or local_today()
    to_date = to_date or from_date + timedelta(days=CALENDAR_WINDOW_DAYS)
    if to_date < from_date:
        raise ValidationError("to_date must be on or after from_date")
    if (to_date - from_date).days > CALENDAR_WINDOW_DAYS:
        raise ValidationError("Date window may span at most one year")
    return list_unavailable_dates(db, property_id=villa_id, from_date=from_date, to_date=to_date)


@router.post("/availability", response_model=AvailabilityOut)
def availability(payload: QuoteRequest, db: Session = Depends(get_db)):
    result = check_availability(db, property_id=payload.villa_id, check_in=payload.check_in, check_out=payload.check_out, guests=payload.guests)
    return AvailabilityOut(villa_id=payload.villa_id, available=result.available, reason=result.reason, message=result.message)


@router.post("/quote", response_model=QuoteOut)
def quote(payload: QuoteRequest, db: Session = Depends(get_db)):
    q = quote_stay(db, property_id=payload.villa_id, check_in=payload.check_in, check_out=payload.check_out, guests=payload.guests)
    return QuoteOut(
        villa_id=q.property_id,
        villa_name=q.property_name,
        check_in=q.check_in,
        check_out=q.check_out,
        nights=q.nights,
        guests=q.guests,
        base_price_per_night=q.base_price_per_night,
        subtotal=q.subtotal,
        adjustment=q.adjustment,
        total=q.total,
        applied_rule_id=q.applied_rule_id,
    )


@router.post("/bookings", response_model=BookingCreated, status_code=201)
def create_booking(
    payload: BookingCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User | None = Depends(get_optional_user),
    notifier=Depends(get_notifier),
):
    placement = place_booking(
        db,
        BookingRequest(
            property_id=payload.villa_id,
            guest_name=payload.guest_name.strip(),
            guest_email=str(payload.guest_email),
            guest_phone=payload.guest_phone.strip(),
            check_in=payload.check_in,
            check_out=payload.check_out,
            guests=payload.guests,
            total_price=payload.total_price,
            special_request=payload.special_request,
        ),
        user_id=user.id if user else None,
        notifier=notifier,
    )
    b = placement.booking

    write_audit_log(
        db,
        actor_user_id=user.id if user else None,
        action_type="PUBLIC_BOOKING_CREATE",
        target_type="booking",
        target_id=b.id,
        summary="Public booking created",
        diff_json={"reference": b.reference, "villa_id": b.property_id},
        request=request,
    )

    return BookingCreated(
        booking_id=b.id,
        reference=b.reference,
        status=b.status,
        villa_name=placement.villa_name,
        check_in=b.check_in,
        check_out=b.check_out,
        guests=b.guests,
        total_price=b.total_price,
        notifications=NotificationFlagsOut(guest=placement.notifications.guest, admin=placement.notifications.admin),
    )


@router.get("/bookings/lookup", response_model=BookingOut)
def lookup(reference: str = Query(min_length=1), email: str = Query(min_length=1), db: Session = Depends(get_db)):
    return lookup_booking(db, reference=reference, email=email)


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_public_booking(booking_id: str, db: Session = Depends(get_db)):
    return get_booking(db, booking_id)


@router.delete("/bookings/{booking_id}", response_model=BookingCancelled)
def cancel(booking_id: str, request: Request, db: Session = Depends(get_db), user: User | None = Depends(get_optional_user)):
    b = cancel_booking(db, booking_id)

    write_audit_log(
        db,
        actor_user_id=user.id if user else None,
        action_type="PUBLIC_BOOKING_CANCEL",
        target_type="booking",
        target_id=b.id,
        summary="Booking cancelled by guest",
        diff_json={"reference": b.reference},
        request=request,
    )

    return BookingCancelled(booking_id=b.id, reference=b.reference, status=b.status, message="Booking cancelled")

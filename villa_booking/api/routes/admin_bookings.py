from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from villa_booking.core.deps import get_db, require_admin
from villa_booking.models.booking import Booking
from villa_booking.schemas.booking import AdminBookingListResponse, AdminBookingUpdate, BookingOut
from villa_booking.schemas.common import paginate
from villa_booking.services.audit_service import write_audit_log
from villa_booking.services.booking_service import get_booking, update_booking

router = APIRouter()


@router.get("", response_model=AdminBookingListResponse)
def list_bookings(
    from_date: date | None = Query(default=None),
    to_date: date | None = Query(default=None),
    villa_id: str | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    q = select(Booking)
    if from_date:
        q = q.where(Booking.check_out > from_date)
    if to_date:
        q = q.where(Booking.check_in <= to_date)
    if villa_id:
        q = q.where(Booking.property_id == villa_id)
    if status:
        q = q.where(Booking.status == status)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.where(
            or_(
                func.lower(Booking.reference).like(pattern),
                func.lower(Booking.guest_name).like(pattern),
                func.lower(Booking.guest_email).like(pattern),
            )
        )

    total = db.execute(select(func.count()).select_from(q.subquery())).scalar_one()
    rows = db.execute(q.order_by(Booking.check_in.asc()).offset((page - 1) * limit).limit(limit)).scalars().all()
    return AdminBookingListResponse(bookings=[BookingOut.model_validate(b) for b in rows], pagination=paginate(page, limit, total))


@router.get("/{booking_id}", response_model=BookingOut)
def get_admin_booking(booking_id: str, db: Session = Depends(get_db), user=Depends(require_admin)):
    return get_booking(db, booking_id)


@router.patch("/{booking_id}", response_model=BookingOut)
def update_admin_booking(booking_id: str, payload: AdminBookingUpdate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    data = payload.model_dump(exclude_unset=True)
    b = update_booking(db, booking_id, data)

    write_audit_log(
        db,
        actor_user_id=user.id,
        action_type="BOOKING_UPDATE",
        target_type="booking",
        target_id=b.id,
        summary="Updated booking",
        diff_json={"fields": sorted(data.keys()), "status": b.status},
        request=request,
    )

    return b

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from villa_booking.core.deps import get_db, require_admin
from villa_booking.core.errors import NotFoundError, ValidationError
from villa_booking.models.blackout_date import BlackoutDate
from villa_booking.schemas.blackout_date import BlackoutDateCreate, BlackoutDateOut, BlackoutRangeCreate
from villa_booking.services.audit_service import write_audit_log
from villa_booking.services.property_service import get_property

router = APIRouter()


@router.get("/{villa_id}/blackout-dates", response_model=list[BlackoutDateOut])
def list_blackouts(
    villa_id: str,
    from_date: date | None = None,
    to_date: date | None = None,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    get_property(db, villa_id)
    q = select(BlackoutDate).where(BlackoutDate.property_id == villa_id).order_by(BlackoutDate.date)
    if from_date:
        q = q.where(BlackoutDate.date >= from_date)
    if to_date:
        q = q.where(BlackoutDate.date <= to_date)
    return db.execute(q.limit(1000)).scalars().all()


@router.post("/{villa_id}/blackout-dates", response_model=BlackoutDateOut, status_code=201)
def create_blackout(villa_id: str, payload: BlackoutDateCreate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    get_property(db, villa_id)
    existing = db.execute(
        select(BlackoutDate.id).where(BlackoutDate.property_id == villa_id, BlackoutDate.date == payload.date)
    ).first()
    if existing is not None:
        raise ValidationError("Date is already blacked out")

    b = BlackoutDate(property_id=villa_id, date=payload.date, reason=payload.reason, created_by_user_id=user.id)
    db.add(b)
    db.commit()
    db.refresh(b)

    write_audit_log(db, actor_user_id=user.id, action_type="BLACKOUT_SINGLE", target_type="blackout", target_id=b.id, summary="Created blackout date", diff_json={"villa_id": villa_id, "date": str(b.date)}, request=request)
    return b


@router.post("/{villa_id}/blackout-dates/bulk")
def create_blackouts_bulk(villa_id: str, payload: BlackoutRangeCreate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    get_property(db, villa_id)
    taken = set(
        db.execute(
            select(BlackoutDate.date)
            .where(BlackoutDate.property_id == villa_id)
            .where(BlackoutDate.date >= payload.date_from)
            .where(BlackoutDate.date <= payload.date_to)
        ).scalars().all()
    )

    created = 0
    d = payload.date_from
    while d <= payload.date_to:
        if d not in taken:
            db.add(BlackoutDate(property_id=villa_id, date=d, reason=payload.reason, created_by_user_id=user.id))
            created += 1
        d = d + timedelta(days=1)

    db.commit()

    write_audit_log(
        db,
        actor_user_id=user.id,
        action_type="BLACKOUT_BULK",
        target_type="blackout",
        target_id="bulk",
        summary="Created blackout dates (bulk)",
        diff_json={"villa_id": villa_id, "count": created, "from": str(payload.date_from), "to": str(payload.date_to)},
        request=request,
    )

    return {"ok": True, "created": created, "skipped": len(taken)}


@router.delete("/{villa_id}/blackout-dates/{blackout_id}")
def delete_blackout(villa_id: str, blackout_id: str, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    b = db.get(BlackoutDate, blackout_id)
    if not b or b.property_id != villa_id:
        raise NotFoundError("Blackout date not found")
    db.delete(b)
    db.commit()

    write_audit_log(db, actor_user_id=user.id, action_type="BLACKOUT_DELETE", target_type="blackout", target_id=blackout_id, summary="Deleted blackout date", request=request)
    return {"ok": True}

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from villa_booking.api.routes.auth import me_response
from villa_booking.core.deps import get_current_user, get_db
from villa_booking.models.user import User
from villa_booking.schemas.auth import MeResponse, ProfileUpdate
from villa_booking.schemas.booking import BookingOut
from villa_booking.services.auth_service import normalize_phone
from villa_booking.services.booking_service import list_bookings_for_user

router = APIRouter()


@router.get("/bookings", response_model=list[BookingOut])
def my_bookings(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return list_bookings_for_user(db, user)


@router.patch("/profile", response_model=MeResponse)
def update_profile(payload: ProfileUpdate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is not None:
        user.name = data["name"].strip()
    if "phone" in data:
        user.phone = normalize_phone(data["phone"]) if data["phone"] else ""
    db.commit()
    db.refresh(user)
    return me_response(user)

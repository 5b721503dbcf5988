from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from villa_booking.core.errors import ActiveBookingsError, NotFoundError, SlugTakenError
from villa_booking.models.booking import ACTIVE_STATUSES, Booking
from villa_booking.models.property import Property
from villa_booking.services.storage import LocalStorage

logger = logging.getLogger(__name__)


def get_property(db: Session, property_id: str) -> Property:
    prop = db.get(Property, property_id)
    if prop is None:
        raise NotFoundError("Villa not found")
    return prop


def get_public_property_by_slug(db: Session, slug: str) -> Property:
    prop = db.execute(
        select(Property).options(selectinload(Property.images)).where(Property.slug == slug, Property.is_active == True)
    ).scalar_one_or_none()
    if prop is None:
        raise NotFoundError("Villa not found")
    return prop


def search_properties(
    db: Session,
    *,
    search: str | None = None,
    location: str | None = None,
    guests: int | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    active_only: bool = True,
    page: int = 1,
    limit: int = 12,
) -> tuple[list[Property], int]:
    q = select(Property)
    if active_only:
        q = q.where(Property.is_active == True)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.where(or_(func.lower(Property.name).like(pattern), func.lower(Property.location).like(pattern)))
    if location:
        q = q.where(func.lower(Property.location).like(f"%{location.lower()}%"))
    if guests:
        q = q.where(Property.max_guests >= guests)
    if min_price is not None:
        q = q.where(Property.base_price >= min_price)
    if max_price is not None:
        q = q.where(Property.base_price <= max_price)

    total = db.execute(select(func.count()).select_from(q.subquery())).scalar_one()
    rows = db.execute(
        q.options(selectinload(Property.images))
        .order_by(Property.created_at.desc(), Property.name)
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().all()
    return list(rows), total


def _ensure_slug_free(db: Session, slug: str, exclude_id: str | None = None) -> None:
    q = select(Property.id).where(Property.slug == slug)
    if exclude_id:
        q = q.where(Property.id != exclude_id)
    if db.execute(q).first() is not None:
        raise SlugTakenError()


def create_property(db: Session, data: dict[str, Any]) -> Property:
    _ensure_slug_free(db, data["slug"])
    prop = Property(**data)
    db.add(prop)
    db.commit()
    db.refresh(prop)
    return prop


def update_property(db: Session, prop: Property, changes: dict[str, Any]) -> Property:
    if "slug" in changes and changes["slug"] != prop.slug:
        _ensure_slug_free(db, changes["slug"], exclude_id=prop.id)
    for k, v in changes.items():
        setattr(prop, k, v)
    db.commit()
    db.refresh(prop)
    return prop


def has_active_bookings(db: Session, property_id: str) -> bool:
    q = select(Booking.id).where(Booking.property_id == property_id, Booking.status.in_(ACTIVE_STATUSES)).limit(1)
    return db.execute(q).first() is not None


def delete_property(db: Session, storage: LocalStorage, prop: Property) -> bool:
    """Delete a villa with its images, rules and blackout dates.

    Refused while any pending or confirmed booking references it. A villa
    that only has cancelled or completed bookings is deactivated instead, so
    booking history keeps its villa. Returns True when the row was deleted.
    """
    if has_active_bookings(db, prop.id):
        raise ActiveBookingsError()

    has_history = db.execute(select(Booking.id).where(Booking.property_id == prop.id).limit(1)).first() is not None
    if has_history:
        prop.is_active = False
        db.commit()
        logger.info("Villa %s has booking history; deactivated instead of deleted", prop.id)
        return False

    keys = [image.file_path for image in prop.images]
    db.delete(prop)
    db.commit()

    for key in keys:
        try:
            storage.delete(key)
        except (OSError, ValueError):
            logger.exception("Failed to delete stored image %s", key)
    return True

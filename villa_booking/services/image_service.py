from __future__ import annotations

import logging
import secrets
import time
from pathlib import PurePath

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from villa_booking.core.config import get_settings
from villa_booking.core.errors import ImageRejectedError, NotFoundError
from villa_booking.models.image import PropertyImage
from villa_booking.models.property import Property
from villa_booking.services.storage import LocalStorage

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def validate_image(content_type: str | None, size: int) -> str:
    """Return the file extension for an accepted upload."""
    ext = ALLOWED_CONTENT_TYPES.get((content_type or "").lower())
    if ext is None:
        raise ImageRejectedError("Unsupported file type. Use JPG, PNG or WebP")
    if size <= 0:
        raise ImageRejectedError("Empty file")
    max_bytes = get_settings().max_image_bytes
    if size > max_bytes:
        raise ImageRejectedError(f"File too large. Maximum {max_bytes // (1024 * 1024)}MB")
    return ext


def _clear_primary(db: Session, property_id: str, keep_id: str | None = None) -> None:
    stmt = update(PropertyImage).where(PropertyImage.property_id == property_id).values(is_primary=False)
    if keep_id:
        stmt = stmt.where(PropertyImage.id != keep_id)
    db.execute(stmt)


def list_images(db: Session, property_id: str) -> list[PropertyImage]:
    q = (
        select(PropertyImage)
        .where(PropertyImage.property_id == property_id)
        .order_by(PropertyImage.is_primary.desc(), PropertyImage.sort_order, PropertyImage.created_at.desc())
    )
    return list(db.execute(q).scalars().all())


def get_image(db: Session, property_id: str, image_id: str) -> PropertyImage:
    image = db.get(PropertyImage, image_id)
    if image is None or image.property_id != property_id:
        raise NotFoundError("Image not found")
    return image


def upload_image(
    db: Session,
    storage: LocalStorage,
    *,
    prop: Property,
    filename: str,
    content_type: str | None,
    data: bytes,
    alt: str = "",
    is_primary: bool = False,
) -> PropertyImage:
    ext = validate_image(content_type, len(data))
    key = f"villas/{prop.id}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"
    url = storage.save(key, data)

    try:
        if is_primary:
            _clear_primary(db, prop.id)
        next_order = db.execute(
            select(PropertyImage.sort_order)
            .where(PropertyImage.property_id == prop.id)
            .order_by(PropertyImage.sort_order.desc())
            .limit(1)
        ).scalar_one_or_none()
        image = PropertyImage(
            property_id=prop.id,
            url=url,
            alt=alt or PurePath(filename or "").name,
            file_path=key,
            file_size=len(data),
            content_type=content_type or "",
            is_primary=is_primary,
            sort_order=(next_order + 1) if next_order is not None else 0,
        )
        db.add(image)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        # Do not leave an orphaned object behind
        storage.delete(key)
        raise

    return image


def update_image(db: Session, image: PropertyImage, *, alt: str | None = None, is_primary: bool | None = None) -> PropertyImage:
    if is_primary:
        _clear_primary(db, image.property_id, keep_id=image.id)
    if alt is not None:
        image.alt = alt
    if is_primary is not None:
        image.is_primary = is_primary
    db.commit()
    return image


def delete_image(db: Session, storage: LocalStorage, image: PropertyImage) -> None:
    try:
        storage.delete(image.file_path)
    except (OSError, ValueError):
        # Record removal proceeds; the object can be swept later
        logger.exception("Failed to delete stored image %s", image.file_path)
    db.delete(image)
    db.commit()

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.orm import Session

from villa_booking.core.deps import get_db, require_admin
from villa_booking.schemas.image import AdminImageOut, ImageUpdate
from villa_booking.services.audit_service import write_audit_log
from villa_booking.services.image_service import delete_image, get_image, list_images, update_image, upload_image
from villa_booking.services.property_service import get_property
from villa_booking.services.storage import LocalStorage, get_storage

router = APIRouter()


@router.get("/{villa_id}/images", response_model=list[AdminImageOut])
def list_villa_images(villa_id: str, db: Session = Depends(get_db), user=Depends(require_admin)):
    get_property(db, villa_id)
    return list_images(db, villa_id)


@router.post("/{villa_id}/images", response_model=AdminImageOut, status_code=201)
def upload_villa_image(
    villa_id: str,
    request: Request,
    file: UploadFile = File(...),
    alt: str = Form(default=""),
    is_primary: bool = Form(default=False),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    user=Depends(require_admin),
):
    prop = get_property(db, villa_id)
    data = file.file.read()
    image = upload_image(
        db,
        storage,
        prop=prop,
        filename=file.filename or "",
        content_type=file.content_type,
        data=data,
        alt=alt,
        is_primary=is_primary,
    )

    write_audit_log(db, actor_user_id=user.id, action_type="VILLA_IMAGE_UPLOAD", target_type="villa_image", target_id=image.id, summary="Uploaded villa image", diff_json={"villa_id": villa_id, "size": image.file_size}, request=request)
    return image


@router.patch("/{villa_id}/images/{image_id}", response_model=AdminImageOut)
def update_villa_image(villa_id: str, image_id: str, payload: ImageUpdate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    image = get_image(db, villa_id, image_id)
    data = payload.model_dump(exclude_unset=True)
    image = update_image(db, image, alt=data.get("alt"), is_primary=data.get("is_primary"))

    write_audit_log(db, actor_user_id=user.id, action_type="VILLA_IMAGE_UPDATE", target_type="villa_image", target_id=image.id, summary="Updated villa image", diff_json={"keys": sorted(data.keys())}, request=request)
    return image


@router.delete("/{villa_id}/images/{image_id}")
def delete_villa_image(
    villa_id: str,
    image_id: str,
    request: Request,
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    user=Depends(require_admin),
):
    image = get_image(db, villa_id, image_id)
    delete_image(db, storage, image)

    write_audit_log(db, actor_user_id=user.id, action_type="VILLA_IMAGE_DELETE", target_type="villa_image", target_id=image_id, summary="Deleted villa image", request=request)
    return {"ok": True}

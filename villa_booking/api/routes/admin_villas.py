from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from villa_booking.core.deps import get_db, require_admin
from villa_booking.schemas.common import paginate
from villa_booking.schemas.property import AdminPropertyListResponse, AdminPropertyOut, PropertyCreate, PropertyUpdate
from villa_booking.services.audit_service import write_audit_log
from villa_booking.services.property_service import (
    create_property,
    delete_property,
    get_property,
    search_properties,
    update_property,
)
from villa_booking.services.storage import LocalStorage, get_storage

router = APIRouter()


@router.get("", response_model=AdminPropertyListResponse)
def list_villas(
    search: str | None = None,
    include_inactive: bool = True,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    villas, total = search_properties(db, search=search, active_only=not include_inactive, page=page, limit=limit)
    return AdminPropertyListResponse(
        villas=[AdminPropertyOut.model_validate(v) for v in villas],
        pagination=paginate(page, limit, total),
    )


@router.get("/{villa_id}", response_model=AdminPropertyOut)
def get_villa(villa_id: str, db: Session = Depends(get_db), user=Depends(require_admin)):
    return get_property(db, villa_id)


@router.post("", response_model=AdminPropertyOut, status_code=201)
def create_villa(payload: PropertyCreate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    v = create_property(db, payload.model_dump())

    write_audit_log(db, actor_user_id=user.id, action_type="VILLA_CREATE", target_type="villa", target_id=v.id, summary="Created villa", diff_json={"slug": v.slug}, request=request)
    return v


@router.patch("/{villa_id}", response_model=AdminPropertyOut)
def update_villa(villa_id: str, payload: PropertyUpdate, request: Request, db: Session = Depends(get_db), user=Depends(require_admin)):
    v = get_property(db, villa_id)
    data = payload.model_dump(exclude_unset=True)
    v = update_property(db, v, data)

    write_audit_log(db, actor_user_id=user.id, action_type="VILLA_UPDATE", target_type="villa", target_id=v.id, summary="Updated villa", diff_json={"keys": sorted(data.keys())}, request=request)
    return v


@router.delete("/{villa_id}")
def delete_villa(
    villa_id: str,
    request: Request,
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    user=Depends(require_admin),
):
    v = get_property(db, villa_id)
    deleted = delete_property(db, storage, v)

    summary = "Deleted villa" if deleted else "Deactivated villa with booking history"
    write_audit_log(db, actor_user_id=user.id, action_type="VILLA_DELETE", target_type="villa", target_id=villa_id, summary=summary, request=request)
    return {"ok": True, "deleted": deleted, "deactivated": not deleted}

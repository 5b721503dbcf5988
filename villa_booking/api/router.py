from __future__ import annotations

from fastapi import APIRouter

from villa_booking.api.routes import (
    account,
    admin_audit,
    admin_blackouts,
    admin_bookings,
    admin_images,
    admin_pricing_rules,
    admin_villas,
    auth,
    public,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(account.router, prefix="/account", tags=["account"])
api_router.include_router(public.router, prefix="/public", tags=["public"])

# Admin
api_router.include_router(admin_villas.router, prefix="/admin/villas", tags=["admin-villas"])
api_router.include_router(admin_images.router, prefix="/admin/villas", tags=["admin-images"])
api_router.include_router(admin_pricing_rules.router, prefix="/admin/villas", tags=["admin-pricing-rules"])
api_router.include_router(admin_blackouts.router, prefix="/admin/villas", tags=["admin-blackouts"])
api_router.include_router(admin_bookings.router, prefix="/admin/bookings", tags=["admin-bookings"])
api_router.include_router(admin_audit.router, prefix="/admin", tags=["admin-audit"])

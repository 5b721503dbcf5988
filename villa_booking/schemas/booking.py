from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from villa_booking.schemas.common import Money, Pagination

BookingStatus = Literal["pending", "confirmed", "cancelled", "completed"]


class QuoteRequest(BaseModel):
    villa_id: str
    check_in: date
    check_out: date
    guests: int = Field(ge=1)


class QuoteOut(BaseModel):
    villa_id: str
    villa_name: str
    check_in: date
    check_out: date
    nights: int
    guests: int
    base_price_per_night: Money
    subtotal: Money
    adjustment: Money
    total: Money
    applied_rule_id: str | None = None


class BookingCreate(BaseModel):
    villa_id: str
    guest_name: str = Field(min_length=1, max_length=255)
    guest_email: EmailStr
    guest_phone: str = Field(min_length=1, max_length=32)
    check_in: date
    check_out: date
    guests: int = Field(ge=1)
    total_price: Decimal = Field(ge=0)
    special_request: str | None = Field(default=None, max_length=2000)


class NotificationFlagsOut(BaseModel):
    guest: bool
    admin: bool


class BookingCreated(BaseModel):
    booking_id: str
    reference: str
    status: BookingStatus
    villa_name: str
    check_in: date
    check_out: date
    guests: int
    total_price: Money
    notifications: NotificationFlagsOut


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reference: str
    villa_id: str = Field(validation_alias="property_id")
    guest_name: str
    guest_email: str
    guest_phone: str
    check_in: date
    check_out: date
    guests: int
    total_price: Money
    status: BookingStatus
    special_request: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime


class BookingCancelled(BaseModel):
    booking_id: str
    reference: str
    status: BookingStatus
    message: str


class AdminBookingUpdate(BaseModel):
    status: BookingStatus | None = None
    special_request: str | None = Field(default=None, max_length=2000)


class AdminBookingListResponse(BaseModel):
    bookings: list[BookingOut]
    pagination: Pagination


class UnavailableRange(BaseModel):
    check_in: date
    check_out: date


class UnavailableDatesOut(BaseModel):
    villa_id: str
    blackout_dates: list[date]
    booked_ranges: list[UnavailableRange]


class AvailabilityOut(BaseModel):
    villa_id: str
    available: bool
    reason: str | None = None
    message: str = ""

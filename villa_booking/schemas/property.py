from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from villa_booking.schemas.common import Money, Pagination
from villa_booking.schemas.image import ImageOut

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class PropertyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: str = Field(min_length=1)
    location: str = Field(min_length=1, max_length=255)
    bedrooms: int = Field(ge=1)
    bathrooms: int = Field(ge=1)
    max_guests: int = Field(ge=1)
    base_price: Decimal = Field(ge=0)
    amenities: list[str] = Field(default_factory=list)
    is_active: bool = True


class PropertyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=255, pattern=SLUG_PATTERN)
    description: str | None = Field(default=None, min_length=1)
    location: str | None = Field(default=None, min_length=1, max_length=255)
    bedrooms: int | None = Field(default=None, ge=1)
    bathrooms: int | None = Field(default=None, ge=1)
    max_guests: int | None = Field(default=None, ge=1)
    base_price: Decimal | None = Field(default=None, ge=0)
    amenities: list[str] | None = None
    rating_average: Decimal | None = Field(default=None, ge=0, le=5)
    is_active: bool | None = None

    @model_validator(mode="after")
    def _reject_nulls(self):
        # rating_average is the only column that may be cleared
        for name in self.model_fields_set - {"rating_average"}:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PropertySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    name: str
    location: str
    bedrooms: int
    bathrooms: int
    max_guests: int
    base_price: Money
    rating_average: Money | None = None
    primary_image: ImageOut | None = None


class PropertyOut(PropertySummary):
    description: str
    amenities: list[str]
    images: list[ImageOut] = Field(default_factory=list)


class AdminPropertyOut(PropertyOut):
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PropertyListResponse(BaseModel):
    villas: list[PropertySummary]
    pagination: Pagination


class AdminPropertyListResponse(BaseModel):
    villas: list[AdminPropertyOut]
    pagination: Pagination

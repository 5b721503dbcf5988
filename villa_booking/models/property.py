from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from villa_booking.db.base import Base
from villa_booking.models._mixins import TimestampMixin


class Property(Base, TimestampMixin):
    __tablename__ = "villas"
    __table_args__ = (
        CheckConstraint("max_guests > 0", name="ck_villas_max_guests_positive"),
        CheckConstraint("base_price >= 0", name="ck_villas_base_price_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False)

    # Nightly rate in whole currency units
    base_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    amenities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    rating_average: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    images: Mapped[list["PropertyImage"]] = relationship(
        "PropertyImage", back_populates="property", cascade="all, delete-orphan", order_by="PropertyImage.sort_order"
    )
    pricing_rules: Mapped[list["PricingRule"]] = relationship("PricingRule", back_populates="property", cascade="all, delete-orphan")
    blackout_dates: Mapped[list["BlackoutDate"]] = relationship("BlackoutDate", back_populates="property", cascade="all, delete-orphan")

    @property
    def primary_image(self) -> "PropertyImage | None":
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

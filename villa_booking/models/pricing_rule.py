from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from villa_booking.db.base import Base
from villa_booking.models._mixins import TimestampMixin

RULE_PERCENTAGE = "percentage"
RULE_FLAT = "flat"
RULE_KINDS = (RULE_PERCENTAGE, RULE_FLAT)


class PricingRule(Base, TimestampMixin):
    __tablename__ = "pricing_rules"
    __table_args__ = (
        CheckConstraint("starts_on <= ends_on", name="ck_pricing_rules_window"),
        CheckConstraint("kind IN (" + ", ".join(f"'{k}'" for k in RULE_KINDS) + ")", name="ck_pricing_rules_kind"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    property_id: Mapped[str] = mapped_column(String(36), ForeignKey("villas.id", ondelete="CASCADE"), nullable=False, index=True)

    # Inclusive validity window
    starts_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    ends_on: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    kind: Mapped[str] = mapped_column(String(16), nullable=False)  # percentage/flat
    # percentage: relative to the stay subtotal; flat: amount per night. Negative values are discounts.
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    min_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)

    property: Mapped["Property"] = relationship("Property", back_populates="pricing_rules")

from __future__ import annotations

import uuid
import datetime

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from villa_booking.db.base import Base
from villa_booking.models._mixins import TimestampMixin


class BlackoutDate(Base, TimestampMixin):
    __tablename__ = "blackout_dates"
    __table_args__ = (UniqueConstraint("property_id", "date", name="uq_blackout_dates_property_date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    property_id: Mapped[str] = mapped_column(String(36), ForeignKey("villas.id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)

    reason: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    created_by_user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)

    property: Mapped["Property"] = relationship("Property", back_populates="blackout_dates")

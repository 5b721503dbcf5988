from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from villa_booking.schemas.common import Money

RuleKind = Literal["percentage", "flat"]

# a percentage rule below this would price a stay under zero
MIN_PERCENTAGE = Decimal("-100")


class PricingRuleCreate(BaseModel):
    starts_on: date
    ends_on: date
    kind: RuleKind
    value: Decimal
    min_nights: int | None = Field(default=None, ge=1)
    max_nights: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.starts_on > self.ends_on:
            raise ValueError("starts_on must be on or before ends_on")
        if self.kind == "percentage" and self.value < MIN_PERCENTAGE:
            raise ValueError("percentage value must not be below -100")
        if self.min_nights is not None and self.max_nights is not None and self.min_nights > self.max_nights:
            raise ValueError("min_nights must not exceed max_nights")
        return self


class PricingRuleUpdate(BaseModel):
    starts_on: date | None = None
    ends_on: date | None = None
    kind: RuleKind | None = None
    value: Decimal | None = None
    min_nights: int | None = Field(default=None, ge=1)
    max_nights: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _reject_nulls(self):
        for name in ("starts_on", "ends_on", "kind", "value"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PricingRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    villa_id: str = Field(validation_alias="property_id")
    starts_on: date
    ends_on: date
    kind: RuleKind
    value: Money
    min_nights: int | None
    max_nights: int | None
    created_at: datetime

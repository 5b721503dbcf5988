from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BlackoutDateCreate(BaseModel):
    date: datetime.date
    reason: str = Field(default="", max_length=255)


class BlackoutRangeCreate(BaseModel):
    date_from: datetime.date
    date_to: datetime.date
    reason: str = Field(default="", max_length=255)

    @model_validator(mode="after")
    def _check_range(self):
        if self.date_from > self.date_to:
            raise ValueError("date_from must be on or before date_to")
        if (self.date_to - self.date_from).days > 366:
            raise ValueError("Range may span at most one year")
        return self


class BlackoutDateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    villa_id: str = Field(validation_alias="property_id")
    date: datetime.date
    reason: str

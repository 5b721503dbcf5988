from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    alt: str
    is_primary: bool


class AdminImageOut(ImageOut):
    file_path: str
    file_size: int
    content_type: str
    sort_order: int


class ImageUpdate(BaseModel):
    alt: str | None = Field(default=None, max_length=255)
    is_primary: bool | None = None

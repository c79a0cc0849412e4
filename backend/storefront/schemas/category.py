from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: int | None = None
    attributes_normalized: dict | None = None


class CategoryCreate(CategoryBase):
    slug: str | None = Field(None, max_length=255)


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    parent_id: int | None = None
    attributes_normalized: dict | None = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    is_active: bool
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CategoryBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str


class SlugAvailability(BaseModel):
    slug: str
    available: bool

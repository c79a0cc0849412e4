from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ReviewCreate(BaseModel):
    product_id: UUID
    rating: int
    comment: str | None = None


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    user_id: UUID
    rating: int
    comment: str | None
    created_at: datetime


class AverageRating(BaseModel):
    product_id: UUID
    average_rating: float

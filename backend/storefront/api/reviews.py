from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import get_current_user
from storefront.db.base import get_db
from storefront.models.user import User
from storefront.schemas.review import AverageRating, ReviewCreate, ReviewResponse
from storefront.services import reviews as review_service

router = APIRouter(prefix="/product-reviews", tags=["product-reviews"])


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(body: ReviewCreate, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await review_service.create_review(db, user.id, body)


@router.get("/product/{product_id}", response_model=list[ReviewResponse])
async def list_reviews(product_id: UUID, db: AsyncSession = Depends(get_db)):
    return await review_service.list_reviews(db, product_id)


@router.get("/product/{product_id}/average", response_model=AverageRating)
async def average_rating(product_id: UUID, db: AsyncSession = Depends(get_db)):
    return AverageRating(product_id=product_id, average_rating=await review_service.average_rating(db, product_id))

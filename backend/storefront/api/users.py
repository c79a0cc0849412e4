"""Admin user management."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.deps import require_admin
from storefront.db.base import get_db
from storefront.models.user import RoleType
from storefront.schemas.auth import UserCreate, UserResponse, UserUpdate
from storefront.services import auth as auth_service

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[UserResponse])
async def list_users(role: RoleType | None = None, db: AsyncSession = Depends(get_db)):
    return await auth_service.list_users(db, role)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    return await auth_service.create_user(db, body)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db)):
    return await auth_service.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(user_id: UUID, body: UserUpdate, db: AsyncSession = Depends(get_db)):
    return await auth_service.update_user(db, user_id, body)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: UUID, db: AsyncSession = Depends(get_db)):
    await auth_service.delete_user(db, user_id)

"""Authentication endpoints: register, login, logout, current user."""

from fastapi import APIRouter, Depends, Response, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.deps import TOKEN_COOKIE, get_cache, get_current_user, get_token
from storefront.db.base import get_db
from storefront.models.user import User
from storefront.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, TokenStatus, UserResponse
from storefront.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """Create a customer account and sign it in."""
    result = await auth_service.register(db, body)
    _set_token_cookie(response, result.access_token)
    return result


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    result = await auth_service.login(db, body)
    _set_token_cookie(response, result.access_token)
    return result


@router.post("/logout")
async def logout(response: Response, token: str = Depends(get_token), redis: Redis = Depends(get_cache)):
    await auth_service.logout(redis, token)
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logged out"}


@router.get("/validate", response_model=TokenStatus)
async def validate(user: User = Depends(get_current_user)):
    return TokenStatus(valid=True, user_id=user.id, email=user.email, roles=user.role_names)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user

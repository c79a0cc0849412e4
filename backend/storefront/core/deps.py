"""Dependency injection: authentication, role enforcement, stores and gateway."""

from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pymongo.asynchronous.database import AsyncDatabase
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import AuthenticationError, ForbiddenError
from storefront.db.base import get_db
from storefront.db.mongo import get_mongo_db
from storefront.db.redis import get_redis
from storefront.models.user import RoleType, User
from storefront.services import auth as auth_service
from storefront.services import cache
from storefront.services.stripe_client import StripeClient

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

TOKEN_COOKIE = "token"


def get_payment_gateway() -> StripeClient:
    return StripeClient()


def get_cache() -> Redis:
    return get_redis()


def get_analytics_db() -> AsyncDatabase:
    return get_mongo_db()


async def get_token(request: Request, bearer: str | None = Depends(oauth2_scheme)) -> str:
    """Bearer header first, then the ``token`` cookie."""
    token = bearer or request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise AuthenticationError("Authentication required")
    return token


async def get_current_user(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_cache),
) -> User:
    """Resolve the caller. Rejects revoked tokens and inactive accounts."""
    payload = auth_service.validate_token(token)
    if await cache.is_token_blacklisted(redis, token):
        raise AuthenticationError("Token has been revoked")

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise AuthenticationError("Invalid token")

    user = await db.get(User, user_id)
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise ForbiddenError("Account is deactivated")
    return user


def require_role(*allowed_roles: RoleType):
    """Dependency factory: checks the user has one of the allowed roles."""
    allowed = {r.value for r in allowed_roles}

    async def checker(user: User = Depends(get_current_user)) -> User:
        if not allowed.intersection(user.role_names):
            raise ForbiddenError(f"Required role: {', '.join(sorted(allowed))}")
        return user

    return checker


require_admin = require_role(RoleType.ADMIN)
require_catalog_editor = require_role(RoleType.ADMIN, RoleType.VENDOR)
require_template_editor = require_role(RoleType.ADMIN, RoleType.DESIGNER)


def is_admin(user: User) -> bool:
    return RoleType.ADMIN.value in user.role_names

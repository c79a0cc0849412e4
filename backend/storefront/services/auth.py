"""Registration, login, token validation/revocation and admin user management."""

import logging
from uuid import UUID

from jose import ExpiredSignatureError, JWTError
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import AuthenticationError, ConflictError, ForbiddenError, NotFoundError
from storefront.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    seconds_until_expiry,
    verify_password,
)
from storefront.models.order import Order
from storefront.models.user import RoleType, User, UserRole
from storefront.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserCreate,
    UserSummary,
    UserUpdate,
)
from storefront.services import cache

logger = logging.getLogger(__name__)


def issue_token(user: User) -> TokenResponse:
    token = create_access_token(user_id=user.id, email=user.email, roles=user.role_names)
    return TokenResponse(
        access_token=token,
        user=UserSummary(id=user.id, email=user.email, full_name=user.full_name, roles=user.role_names),
    )


async def _get_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def _reload(db: AsyncSession, user_id: UUID) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def register(db: AsyncSession, data: RegisterRequest) -> TokenResponse:
    if await _get_by_email(db, data.email):
        raise ConflictError("Email already registered")

    user = User(
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        full_name=data.full_name,
        phone=data.phone,
        roles=[UserRole(role=RoleType.CUSTOMER)],
    )
    db.add(user)
    await db.commit()
    user = await _reload(db, user.id)
    logger.info("User registered: %s", user.email)
    return issue_token(user)


async def login(db: AsyncSession, data: LoginRequest) -> TokenResponse:
    user = await _get_by_email(db, data.email)
    if not user or not verify_password(data.password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise ForbiddenError("Account is deactivated")
    return issue_token(user)


def validate_token(token: str) -> dict:
    """Decode ``token``; expired and malformed tokens raise different messages."""
    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except JWTError:
        raise AuthenticationError("Invalid token")
    if not payload.get("sub"):
        raise AuthenticationError("Invalid token")
    return payload


async def logout(redis: Redis, token: str) -> None:
    """Blacklist ``token`` until it would have expired anyway."""
    payload = validate_token(token)
    await cache.blacklist_token(redis, token, seconds_until_expiry(payload))
    logger.info("Token revoked for user %s", payload["sub"])


# ── Admin user management ──────────────────────────
async def list_users(db: AsyncSession, role: RoleType | None = None) -> list[User]:
    query = select(User).order_by(User.created_at.desc())
    if role is not None:
        query = query.where(User.roles.any(UserRole.role == role))
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    if await _get_by_email(db, data.email):
        raise ConflictError("Email already registered")

    user = User(
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        full_name=data.full_name,
        phone=data.phone,
        is_active=data.is_active,
        roles=[UserRole(role=role) for role in dict.fromkeys(data.roles)],
    )
    db.add(user)
    await db.commit()
    return await _reload(db, user.id)


async def update_user(db: AsyncSession, user_id: UUID, data: UserUpdate) -> User:
    user = await get_user(db, user_id)
    changes = data.model_dump(exclude_unset=True, exclude={"roles", "password"})
    for field, value in changes.items():
        setattr(user, field, value)
    if data.password:
        user.hashed_password = hash_password(data.password)
    if data.roles is not None:
        user.roles.clear()
        # Flush the removals before re-inserting to keep (user_id, role) unique
        await db.flush()
        user.roles.extend(UserRole(role=role) for role in dict.fromkeys(data.roles))
    await db.commit()
    return await _reload(db, user.id)


async def delete_user(db: AsyncSession, user_id: UUID) -> None:
    user = await get_user(db, user_id)
    has_orders = await db.execute(select(Order.id).where(Order.user_id == user_id).limit(1))
    if has_orders.first():
        raise ConflictError("User has orders and cannot be deleted; deactivate the account instead")
    await db.delete(user)
    await db.commit()
    logger.info("User deleted: %s", user_id)

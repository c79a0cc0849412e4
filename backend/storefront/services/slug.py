"""URL slug helpers shared by categories, products and design templates."""

import re
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """'Modern Oak Chair (2x)' -> 'modern-oak-chair-2x'."""
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


async def slug_exists(db: AsyncSession, model: Any, slug: str, *, exclude_id: Any = None) -> bool:
    query = select(model.id).where(model.slug == slug)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.first() is not None


async def generate_unique_slug(db: AsyncSession, model: Any, name: str) -> str:
    """Return ``base``, ``base-1``, ``base-2``... whichever is free first for ``model``."""
    base = slugify(name) or "item"
    candidate = base
    counter = 0
    while await slug_exists(db, model, candidate):
        counter += 1
        candidate = f"{base}-{counter}"
    return candidate

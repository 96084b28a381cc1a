"""
Profile service — the caller's own profile.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Profile
from domain.enums import UserRole
from domain.errors import ConflictError, NotFoundError
from utils.clock import utcnow


async def get_profile(db: AsyncSession, *, user_id: str) -> Profile | None:
    res = await db.execute(
        select(Profile)
        .options(selectinload(Profile.user))
        .where(Profile.user_id == user_id)
    )
    return res.scalar_one_or_none()


async def create_profile(db: AsyncSession, *, user_id: str, fields: dict) -> Profile:
    if await get_profile(db, user_id=user_id):
        raise ConflictError("Profile already exists")

    # role is never taken from the request
    fields.pop("role", None)
    profile = Profile(user_id=user_id, role=UserRole.CLIENT.value, **fields)
    db.add(profile)
    await db.flush()
    return profile


async def update_profile(db: AsyncSession, *, user_id: str, fields: dict) -> Profile:
    """Only provided fields are updated."""
    profile = await get_profile(db, user_id=user_id)
    if not profile:
        raise NotFoundError("Profile", user_id)

    fields.pop("role", None)
    for key, value in fields.items():
        setattr(profile, key, value)
    profile.updated_at = utcnow()
    await db.flush()
    return profile

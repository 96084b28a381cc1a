"""
Shared FastAPI dependencies.

Routers import DB sessions, caller identity, the admin guard and pagination
from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TypedDict

from fastapi import Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User, Profile
from domain.enums import UserRole
from domain.errors import PermissionDeniedError, UnauthorizedError
from middleware.auth import get_token_subject, require_token_subject


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


async def _load_user(db: AsyncSession, user_id: str) -> CurrentUser | None:
    res = await db.execute(
        select(User, Profile.role)
        .outerjoin(Profile, Profile.user_id == User.id)
        .where(User.id == user_id)
    )
    row = res.first()
    if not row:
        return None
    user, role = row
    return CurrentUser(
        id=user.id,
        email=user.email,
        name=user.name,
        role=role or UserRole.CLIENT.value,
    )


async def get_current_user(
    user_id: str = Depends(require_token_subject),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to a user; the role comes from the profile row."""
    user = await _load_user(db, user_id)
    if not user:
        raise UnauthorizedError("User for access token no longer exists.")
    return user


async def get_optional_user(
    user_id: Optional[str] = Depends(get_token_subject),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser | None:
    """Like get_current_user, but anonymous callers get None instead of 401."""
    if not user_id:
        return None
    return await _load_user(db, user_id)


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise PermissionDeniedError("Admin role required for this endpoint.")
    return user

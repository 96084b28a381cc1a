"""
Auth service — email/password accounts.

Registration creates the User and its client Profile in one flush so every
account has a role from the start.
"""

import logging

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import User, Profile
from domain.enums import UserRole
from domain.errors import ConflictError, NotFoundError, UnauthorizedError
from utils.clock import utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    res = await db.execute(select(User).where(User.email == _normalize_email(email)))
    return res.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
) -> tuple[User, Profile]:
    if await get_user_by_email(db, email):
        raise ConflictError("An account with this email already exists")

    user = User(name=name.strip(), email=_normalize_email(email), password_hash=hash_password(password))
    db.add(user)
    await db.flush()

    first, _, last = user.name.partition(" ")
    profile = Profile(
        user_id=user.id,
        first_name=first or None,
        last_name=last or None,
        role=UserRole.CLIENT.value,
    )
    db.add(profile)
    await db.flush()
    logger.info(f"Registered user {user.id}")
    return user, profile


async def authenticate(db: AsyncSession, *, email: str, password: str) -> tuple[User, str]:
    """Return (user, role) for valid credentials."""
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for {_normalize_email(email)}")
        raise UnauthorizedError("Invalid email or password")

    res = await db.execute(select(Profile.role).where(Profile.user_id == user.id))
    role = res.scalar_one_or_none() or UserRole.CLIENT.value
    return user, role


async def set_role(db: AsyncSession, *, email: str, role: UserRole) -> Profile:
    """Change a user's role, creating the profile row if it is missing."""
    user = await get_user_by_email(db, email)
    if not user:
        raise NotFoundError("User", email)

    res = await db.execute(select(Profile).where(Profile.user_id == user.id))
    profile = res.scalar_one_or_none()
    if not profile:
        profile = Profile(user_id=user.id, role=role.value)
        db.add(profile)
    else:
        profile.role = role.value
        profile.updated_at = utcnow()
    await db.flush()
    logger.info(f"User {user.id} role set to {role.value}")
    return profile

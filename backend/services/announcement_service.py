"""
Announcement service.

Visibility for non-admins: published, not expired, and addressed to `all`
or to the caller's audience (`clients` when signed in, `unregistered` when
anonymous). Admins see everything, drafts included.
"""

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Announcement
from domain.enums import Audience
from domain.errors import NotFoundError
from utils.clock import utcnow
from utils.pagination import fetch_page


def audiences_for(*, is_admin: bool, signed_in: bool) -> list[str] | None:
    """Audiences a caller may see; None means unrestricted."""
    if is_admin:
        return None
    if signed_in:
        return [Audience.ALL.value, Audience.CLIENTS.value]
    return [Audience.ALL.value, Audience.UNREGISTERED.value]


def _visible(stmt, audiences: list[str] | None):
    if audiences is None:
        return stmt
    now = utcnow()
    return stmt.where(
        Announcement.is_published == True,  # noqa: E712
        Announcement.audience.in_(audiences),
        or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
    )


async def list_announcements(
    db: AsyncSession,
    *,
    audiences: list[str] | None,
    type: str | None = None,
    priority: str | None = None,
    audience: str | None = None,
    published: bool | None = None,
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Announcement], int]:
    stmt = _visible(select(Announcement), audiences)
    if type:
        stmt = stmt.where(Announcement.type == type)
    if priority:
        stmt = stmt.where(Announcement.priority == priority)
    if audience:
        stmt = stmt.where(Announcement.audience == audience)
    if published is not None:
        stmt = stmt.where(Announcement.is_published == published)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(Announcement.title.ilike(pattern), Announcement.content.ilike(pattern)))
    stmt = stmt.order_by(Announcement.created_at.desc())
    return await fetch_page(db, stmt, limit=limit, offset=offset)


async def get_announcement(db: AsyncSession, *, announcement_id: str, audiences: list[str] | None = None) -> Announcement:
    stmt = _visible(select(Announcement).where(Announcement.id == announcement_id), audiences)
    res = await db.execute(stmt)
    announcement = res.scalar_one_or_none()
    if not announcement:
        raise NotFoundError("Announcement", announcement_id)
    return announcement


async def create_announcement(db: AsyncSession, *, created_by: str, fields: dict) -> Announcement:
    announcement = Announcement(created_by=created_by, **fields)
    if announcement.is_published:
        announcement.published_at = utcnow()
    db.add(announcement)
    await db.flush()
    return announcement


async def update_announcement(db: AsyncSession, *, announcement_id: str, fields: dict) -> Announcement:
    announcement = await get_announcement(db, announcement_id=announcement_id)
    for key, value in fields.items():
        setattr(announcement, key, value)
    # first publish stamps published_at; unpublishing keeps it
    if announcement.is_published and announcement.published_at is None:
        announcement.published_at = utcnow()
    announcement.updated_at = utcnow()
    await db.flush()
    return announcement


async def delete_announcement(db: AsyncSession, *, announcement_id: str) -> None:
    announcement = await get_announcement(db, announcement_id=announcement_id)
    await db.delete(announcement)
    await db.flush()

"""
Notification service — per-user inbox.

Other services call notify() to drop a message into a user's inbox; nothing
here sends email or push, sent_via only records the intended channels.
"""

import logging

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Notification
from domain.constants import DEFAULT_SENT_VIA
from domain.errors import NotFoundError
from utils.clock import utcnow
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    *,
    user_id: str,
    title: str,
    message: str,
    type: str,
    priority: str = "normal",
    action_url: str | None = None,
    order_id: str | None = None,
    purchase_id: str | None = None,
    extra: dict | None = None,
    sent_via: list[str] | None = None,
    scheduled_at=None,
) -> Notification:
    now = utcnow()
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        priority=priority,
        action_url=action_url,
        order_id=order_id,
        purchase_id=purchase_id,
        extra=extra,
        sent_via=list(sent_via or DEFAULT_SENT_VIA),
        scheduled_at=scheduled_at,
        sent_at=None if scheduled_at and scheduled_at > now else now,
    )
    db.add(notification)
    await db.flush()
    logger.info(f"Notification {type} -> user {user_id}: {title}")
    return notification


async def list_notifications(
    db: AsyncSession,
    *,
    user_id: str,
    type: str | None = None,
    priority: str | None = None,
    read: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Notification], int]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if type:
        stmt = stmt.where(Notification.type == type)
    if priority:
        stmt = stmt.where(Notification.priority == priority)
    if read is not None:
        stmt = stmt.where(Notification.is_read == read)
    stmt = stmt.order_by(Notification.created_at.desc())
    return await fetch_page(db, stmt, limit=limit, offset=offset)


async def get_notification(db: AsyncSession, *, notification_id: str, user_id: str) -> Notification:
    """Owner-scoped lookup; other users' notifications look like missing ones."""
    res = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = res.scalar_one_or_none()
    if not notification:
        raise NotFoundError("Notification", notification_id)
    return notification


async def set_read(db: AsyncSession, *, notification_id: str, user_id: str, is_read: bool) -> Notification:
    notification = await get_notification(db, notification_id=notification_id, user_id=user_id)
    notification.is_read = is_read
    notification.read_at = utcnow() if is_read else None
    notification.updated_at = utcnow()
    await db.flush()
    return notification


async def delete_notification(db: AsyncSession, *, notification_id: str, user_id: str) -> None:
    notification = await get_notification(db, notification_id=notification_id, user_id=user_id)
    await db.delete(notification)
    await db.flush()


async def mark_all_read(db: AsyncSession, *, user_id: str) -> int:
    now = utcnow()
    res = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        .values(is_read=True, read_at=now, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )
    return res.rowcount or 0


async def unread_count(db: AsyncSession, *, user_id: str) -> int:
    res = await db.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        )
    )
    return res.scalar_one()

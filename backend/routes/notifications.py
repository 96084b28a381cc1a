"""
Notification inbox endpoints.

Every read or write is scoped to the caller's own inbox. Admins may create
notifications for any user; everyone else only for themselves.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_current_user, pagination_params
from domain.enums import NotificationPriority, NotificationType
from domain.errors import PermissionDeniedError
from domain.responses import dump, paginated_response, success_response
from models import NotificationCreateRequest, NotificationOut, NotificationUpdateRequest, ReadAllOut
from services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(
    type: Optional[NotificationType] = Query(None),
    priority: Optional[NotificationPriority] = Query(None),
    read: Optional[bool] = Query(None),
    page: Pagination = Depends(pagination_params),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await notification_service.list_notifications(
        db,
        user_id=user.id,
        type=type.value if type else None,
        priority=priority.value if priority else None,
        read=read,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [dump(NotificationOut.model_validate(n)) for n in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("", status_code=201)
async def create_notification(
    request: NotificationCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    fields = request.model_dump()
    target = fields.pop("user_id") or user.id
    if target != user.id and not user.is_admin:
        raise PermissionDeniedError("Only admins can notify other users")

    notification = await notification_service.notify(db, user_id=target, **fields)
    await db.commit()
    return success_response(data=dump(NotificationOut.model_validate(notification)))


@router.patch("/read-all")
async def mark_all_read(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await notification_service.mark_all_read(db, user_id=user.id)
    await db.commit()
    return success_response(data=dump(ReadAllOut(updated=updated)))


@router.get("/{notification_id}")
async def get_notification(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await notification_service.get_notification(
        db, notification_id=notification_id, user_id=user.id
    )
    return success_response(data=dump(NotificationOut.model_validate(notification)))


@router.put("/{notification_id}")
async def update_notification(
    notification_id: str,
    request: NotificationUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await notification_service.set_read(
        db, notification_id=notification_id, user_id=user.id, is_read=request.is_read
    )
    await db.commit()
    return success_response(data=dump(NotificationOut.model_validate(notification)))


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.delete_notification(db, notification_id=notification_id, user_id=user.id)
    await db.commit()
    return success_response(data={"id": notification_id, "deleted": True})

"""
Announcement endpoints.

Anyone may read; what they see depends on who they are (see
announcement_service.audiences_for). Writes are admin only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_optional_user, pagination_params, require_admin
from domain.enums import AnnouncementPriority, AnnouncementType, Audience
from domain.responses import dump, paginated_response, success_response
from models import AnnouncementCreateRequest, AnnouncementOut, AnnouncementUpdateRequest
from services import announcement_service

router = APIRouter(prefix="/announcements", tags=["announcements"])


def _audiences(user: Optional[CurrentUser]):
    return announcement_service.audiences_for(
        is_admin=bool(user and user.is_admin), signed_in=user is not None
    )


@router.get("")
async def list_announcements(
    type: Optional[AnnouncementType] = Query(None),
    priority: Optional[AnnouncementPriority] = Query(None),
    audience: Optional[Audience] = Query(None),
    published: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: Pagination = Depends(pagination_params),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await announcement_service.list_announcements(
        db,
        audiences=_audiences(user),
        type=type.value if type else None,
        priority=priority.value if priority else None,
        audience=audience.value if audience else None,
        published=published,
        search=search,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [dump(AnnouncementOut.model_validate(a)) for a in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/{announcement_id}")
async def get_announcement(
    announcement_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    announcement = await announcement_service.get_announcement(
        db, announcement_id=announcement_id, audiences=_audiences(user)
    )
    return success_response(data=dump(AnnouncementOut.model_validate(announcement)))


@router.post("", status_code=201)
async def create_announcement(
    request: AnnouncementCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    announcement = await announcement_service.create_announcement(
        db, created_by=admin.id, fields=request.model_dump()
    )
    await db.commit()
    return success_response(data=dump(AnnouncementOut.model_validate(announcement)))


@router.put("/{announcement_id}")
async def update_announcement(
    announcement_id: str,
    request: AnnouncementUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    announcement = await announcement_service.update_announcement(
        db, announcement_id=announcement_id, fields=request.model_dump(exclude_unset=True)
    )
    await db.commit()
    return success_response(data=dump(AnnouncementOut.model_validate(announcement)))


@router.delete("/{announcement_id}")
async def delete_announcement(
    announcement_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await announcement_service.delete_announcement(db, announcement_id=announcement_id)
    await db.commit()
    return success_response(data={"id": announcement_id, "deleted": True})

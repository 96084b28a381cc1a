"""
Dashboard endpoints.

    GET /dashboard/client    caller's recent orders, purchases and inbox
    GET /admin/dashboard     platform stats; startDate/endDate narrow the order figures
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, get_current_user, require_admin
from domain.responses import dump, success_response
from models import AdminDashboardOut, ClientDashboardOut
from services import dashboard_service
from utils.validators import date_range_query

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/client")
async def client_dashboard(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await dashboard_service.client_dashboard(db, user_id=user.id)
    return success_response(data=dump(ClientDashboardOut.model_validate(data)))


@router.get("/admin/dashboard")
async def admin_dashboard(
    window: tuple[Optional[datetime], Optional[datetime]] = Depends(date_range_query),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    start, end = window
    data = await dashboard_service.admin_dashboard(db, start=start, end=end)
    return success_response(
        data=dump(AdminDashboardOut.model_validate(data)),
        meta={
            "startDate": start.isoformat() if start else None,
            "endDate": end.isoformat() if end else None,
        },
    )

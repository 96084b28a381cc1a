"""
Dashboard aggregates for clients and admins.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import DigitalProduct, Notification, Order, Purchase, User
from domain.constants import (
    DASHBOARD_NOTIFICATION_LIMIT,
    DASHBOARD_RECENT_LIMIT,
    DASHBOARD_TOP_PRODUCTS,
)
from domain.enums import OrderStatus
from services import notification_service


async def client_dashboard(db: AsyncSession, *, user_id: str) -> dict:
    orders_res = await db.execute(
        select(Order)
        .options(selectinload(Order.service))
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
        .limit(DASHBOARD_RECENT_LIMIT)
    )
    purchases_res = await db.execute(
        select(Purchase)
        .options(selectinload(Purchase.product))
        .where(Purchase.user_id == user_id)
        .order_by(Purchase.created_at.desc())
        .limit(DASHBOARD_RECENT_LIMIT)
    )
    notifications_res = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(DASHBOARD_NOTIFICATION_LIMIT)
    )
    return {
        "orders": list(orders_res.scalars().all()),
        "purchases": list(purchases_res.scalars().all()),
        "unread_notifications": await notification_service.unread_count(db, user_id=user_id),
        "notifications": list(notifications_res.scalars().all()),
    }


def _in_range(stmt, start: datetime | None, end: datetime | None):
    if start:
        stmt = stmt.where(Order.created_at >= start)
    if end:
        stmt = stmt.where(Order.created_at <= end)
    return stmt


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one()


async def admin_dashboard(
    db: AsyncSession,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> dict:
    """Order-based figures honour [start, end]; user and product totals are all-time."""
    order_count = select(func.count()).select_from(Order)

    stats = {
        "total_users": await _count(db, select(func.count()).select_from(User)),
        "total_orders": await _count(db, _in_range(order_count, start, end)),
        "total_products": await _count(db, select(func.count()).select_from(DigitalProduct)),
        "pending_orders": await _count(
            db, _in_range(order_count.where(Order.status == OrderStatus.PENDING.value), start, end)
        ),
        "processing_orders": await _count(
            db, _in_range(order_count.where(Order.status == OrderStatus.PROCESSING.value), start, end)
        ),
    }

    paid_res = await db.execute(
        _in_range(
            select(Order.amount, Order.paid_at, Order.created_at).where(Order.is_paid == True),  # noqa: E712
            start,
            end,
        )
    )
    total_revenue = Decimal("0")
    monthly: dict[str, dict] = {}
    for amount, paid_at, created_at in sorted(paid_res.all(), key=lambda r: r[1] or r[2]):
        amount = Decimal(amount)
        total_revenue += amount
        month = (paid_at or created_at).strftime("%Y-%m")
        bucket = monthly.setdefault(month, {"month": month, "total": Decimal("0"), "count": 0})
        bucket["total"] += amount
        bucket["count"] += 1
    stats["total_revenue"] = total_revenue

    recent_res = await db.execute(
        _in_range(select(Order), start, end)
        .options(selectinload(Order.user))
        .order_by(Order.created_at.desc())
        .limit(DASHBOARD_RECENT_LIMIT)
    )
    top_res = await db.execute(
        select(DigitalProduct)
        .order_by(DigitalProduct.sales_count.desc(), DigitalProduct.created_at.desc())
        .limit(DASHBOARD_TOP_PRODUCTS)
    )

    return {
        "stats": stats,
        "recent_orders": list(recent_res.scalars().all()),
        "top_products": list(top_res.scalars().all()),
        "monthly_revenue": list(monthly.values()),
    }

"""
Catalog service — service categories and bookable services.

Non-admin callers only ever see public services; the route layer passes
`include_private` based on the caller's role.
"""

import logging

from sqlalchemy import or_, select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import ServiceCategory, Service, Order
from domain.errors import ConflictError, NotFoundError, ValidationError
from utils.clock import utcnow
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════
# Categories
# ════════════════════════════════════════════════════════════════════


async def list_categories(
    db: AsyncSession,
    *,
    search: str | None = None,
    active: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[ServiceCategory], int]:
    stmt = select(ServiceCategory)
    if search:
        stmt = stmt.where(ServiceCategory.name.ilike(f"%{search}%"))
    if active is not None:
        stmt = stmt.where(ServiceCategory.is_active == active)
    stmt = stmt.order_by(ServiceCategory.sort_order, ServiceCategory.name)
    return await fetch_page(db, stmt, limit=limit, offset=offset)


async def get_category(db: AsyncSession, *, category_id: str) -> ServiceCategory:
    category = await db.get(ServiceCategory, category_id)
    if not category:
        raise NotFoundError("Service category", category_id)
    return category


async def create_category(db: AsyncSession, *, created_by: str, fields: dict) -> ServiceCategory:
    category = ServiceCategory(created_by=created_by, **fields)
    db.add(category)
    await db.flush()
    return category


async def update_category(db: AsyncSession, *, category_id: str, fields: dict) -> ServiceCategory:
    category = await get_category(db, category_id=category_id)
    for key, value in fields.items():
        setattr(category, key, value)
    category.updated_at = utcnow()
    await db.flush()
    return category


async def delete_category(db: AsyncSession, *, category_id: str) -> None:
    category = await get_category(db, category_id=category_id)

    res = await db.execute(
        select(func.count()).select_from(Service).where(Service.category_id == category_id)
    )
    in_use = res.scalar_one()
    if in_use:
        raise ConflictError(
            f"Cannot delete category {category.name}: {in_use} service(s) still use it"
        )
    await db.delete(category)
    await db.flush()


# ════════════════════════════════════════════════════════════════════
# Services
# ════════════════════════════════════════════════════════════════════


async def list_services(
    db: AsyncSession,
    *,
    include_private: bool,
    category_id: str | None = None,
    search: str | None = None,
    active: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Service], int]:
    stmt = select(Service).join(ServiceCategory, Service.category_id == ServiceCategory.id)
    if not include_private:
        stmt = stmt.where(Service.is_public == True)  # noqa: E712
    if category_id:
        stmt = stmt.where(Service.category_id == category_id)
    if active is not None:
        stmt = stmt.where(Service.is_active == active)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                Service.title.ilike(pattern),
                Service.description.ilike(pattern),
                ServiceCategory.name.ilike(pattern),
            )
        )
    stmt = stmt.order_by(Service.created_at.desc())
    return await fetch_page(
        db, stmt, limit=limit, offset=offset, options=[selectinload(Service.category)]
    )


async def get_service(db: AsyncSession, *, service_id: str, include_private: bool = True) -> Service:
    stmt = select(Service).options(selectinload(Service.category)).where(Service.id == service_id)
    if not include_private:
        stmt = stmt.where(Service.is_public == True)  # noqa: E712
    res = await db.execute(stmt)
    service = res.scalar_one_or_none()
    if not service:
        raise NotFoundError("Service", service_id)
    return service


async def _require_category(db: AsyncSession, category_id: str) -> None:
    if not await db.get(ServiceCategory, category_id):
        raise ValidationError(f"Unknown category {category_id}", field="categoryId")


async def create_service(db: AsyncSession, *, created_by: str, fields: dict) -> Service:
    await _require_category(db, fields["category_id"])
    service = Service(created_by=created_by, **fields)
    db.add(service)
    await db.flush()
    logger.info(f"Service created: {service.id} ({service.title})")
    return service


async def update_service(db: AsyncSession, *, service_id: str, fields: dict) -> Service:
    service = await get_service(db, service_id=service_id)
    if fields.get("category_id") and fields["category_id"] != service.category_id:
        await _require_category(db, fields["category_id"])
        # relationship must follow the new foreign key on the next read
        db.expire(service, ["category"])

    for key, value in fields.items():
        setattr(service, key, value)
    service.updated_at = utcnow()
    await db.flush()
    return service


async def delete_service(db: AsyncSession, *, service_id: str) -> None:
    service = await get_service(db, service_id=service_id)

    res = await db.execute(
        select(func.count()).select_from(Order).where(Order.service_id == service_id)
    )
    order_count = res.scalar_one()
    if order_count:
        raise ConflictError(
            f"Cannot delete service {service.title}: {order_count} order(s) reference it"
        )
    await db.delete(service)
    await db.flush()

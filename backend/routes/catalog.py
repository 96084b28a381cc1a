"""
Catalog endpoints — service categories and bookable services.

    GET    /service-categories          public
    GET    /service-categories/{id}     public
    POST   /service-categories          admin
    PUT    /service-categories/{id}     admin
    DELETE /service-categories/{id}     admin (409 while services use it)

    GET    /services                    public services (admins: all)
    GET    /services/{id}
    POST   /services                    admin
    PUT    /services/{id}               admin
    DELETE /services/{id}               admin (409 while orders reference it)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_optional_user, pagination_params, require_admin
from domain.responses import dump, paginated_response, success_response
from models import (
    CategoryCreateRequest, CategoryOut, CategoryUpdateRequest,
    ServiceCreateRequest, ServiceOut, ServiceUpdateRequest,
)
from services import catalog_service

categories_router = APIRouter(prefix="/service-categories", tags=["catalog"])
router = APIRouter(prefix="/services", tags=["catalog"])


# ════════════════════════════════════════════════════════════════════
# Categories
# ════════════════════════════════════════════════════════════════════


@categories_router.get("")
async def list_categories(
    search: Optional[str] = Query(None, max_length=100),
    active: Optional[bool] = Query(None),
    page: Pagination = Depends(pagination_params),
    db: AsyncSession = Depends(get_db),
):
    items, total = await catalog_service.list_categories(
        db, search=search, active=active, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        [dump(CategoryOut.model_validate(c)) for c in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@categories_router.get("/{category_id}")
async def get_category(category_id: str, db: AsyncSession = Depends(get_db)):
    category = await catalog_service.get_category(db, category_id=category_id)
    return success_response(data=dump(CategoryOut.model_validate(category)))


@categories_router.post("", status_code=201)
async def create_category(
    request: CategoryCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await catalog_service.create_category(db, created_by=admin.id, fields=request.model_dump())
    await db.commit()
    return success_response(data=dump(CategoryOut.model_validate(category)))


@categories_router.put("/{category_id}")
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    category = await catalog_service.update_category(
        db, category_id=category_id, fields=request.model_dump(exclude_unset=True)
    )
    await db.commit()
    return success_response(data=dump(CategoryOut.model_validate(category)))


@categories_router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog_service.delete_category(db, category_id=category_id)
    await db.commit()
    return success_response(data={"id": category_id, "deleted": True})


# ════════════════════════════════════════════════════════════════════
# Services
# ════════════════════════════════════════════════════════════════════


@router.get("")
async def list_services(
    category: Optional[str] = Query(None, description="Category id"),
    search: Optional[str] = Query(None, max_length=100),
    active: Optional[bool] = Query(None),
    page: Pagination = Depends(pagination_params),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await catalog_service.list_services(
        db,
        include_private=bool(user and user.is_admin),
        category_id=category,
        search=search,
        active=active,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [dump(ServiceOut.model_validate(s)) for s in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/{service_id}")
async def get_service(
    service_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    service = await catalog_service.get_service(
        db, service_id=service_id, include_private=bool(user and user.is_admin)
    )
    return success_response(data=dump(ServiceOut.model_validate(service)))


@router.post("", status_code=201)
async def create_service(
    request: ServiceCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    service = await catalog_service.create_service(db, created_by=admin.id, fields=request.model_dump())
    await db.commit()
    service = await catalog_service.get_service(db, service_id=service.id)
    return success_response(data=dump(ServiceOut.model_validate(service)))


@router.put("/{service_id}")
async def update_service(
    service_id: str,
    request: ServiceUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog_service.update_service(
        db, service_id=service_id, fields=request.model_dump(exclude_unset=True)
    )
    await db.commit()
    service = await catalog_service.get_service(db, service_id=service_id)
    return success_response(data=dump(ServiceOut.model_validate(service)))


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog_service.delete_service(db, service_id=service_id)
    await db.commit()
    return success_response(data={"id": service_id, "deleted": True})

"""
Digital product endpoints.

Catalog responses never include the download URL; admins get it through
ProductAdminOut, buyers through POST /purchases/{id}/download.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_optional_user, pagination_params, require_admin
from domain.enums import ProductCategory
from domain.responses import dump, paginated_response, success_response
from models import ProductAdminOut, ProductCreateRequest, ProductOut, ProductUpdateRequest
from services import product_service

router = APIRouter(prefix="/digital-products", tags=["digital-products"])


def _out(product, user: Optional[CurrentUser]) -> dict:
    model = ProductAdminOut if user and user.is_admin else ProductOut
    return dump(model.model_validate(product))


@router.get("")
async def list_products(
    category: Optional[ProductCategory] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    active: Optional[bool] = Query(None),
    public: Optional[bool] = Query(None),
    page: Pagination = Depends(pagination_params),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await product_service.list_products(
        db,
        include_private=bool(user and user.is_admin),
        category=category.value if category else None,
        search=search,
        active=active,
        public=public,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [_out(p, user) for p in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    product = await product_service.get_product(
        db, product_id=product_id, include_private=bool(user and user.is_admin)
    )
    return success_response(data=_out(product, user))


@router.post("", status_code=201)
async def create_product(
    request: ProductCreateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await product_service.create_product(db, created_by=admin.id, fields=request.model_dump())
    await db.commit()
    return success_response(data=_out(product, admin))


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await product_service.update_product(
        db, product_id=product_id, fields=request.model_dump(exclude_unset=True)
    )
    await db.commit()
    return success_response(data=_out(product, admin))


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await product_service.delete_product(db, product_id=product_id)
    await db.commit()
    return success_response(data={"id": product_id, "deleted": True})

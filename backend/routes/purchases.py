"""
Purchase endpoints — buying digital products and downloading them.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_current_user, pagination_params
from domain.responses import dump, paginated_response, success_response
from models import DownloadOut, PurchaseCreateRequest, PurchaseWithProductOut
from services import purchase_service

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.get("")
async def list_purchases(
    product_id: Optional[str] = Query(None, alias="productId"),
    user_id: Optional[str] = Query(None, alias="userId", description="Admin only"),
    is_refunded: Optional[bool] = Query(None, alias="isRefunded"),
    page: Pagination = Depends(pagination_params),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await purchase_service.list_purchases(
        db,
        viewer_id=user.id,
        is_admin=user.is_admin,
        user_id=user_id,
        product_id=product_id,
        is_refunded=is_refunded,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [dump(PurchaseWithProductOut.model_validate(p)) for p in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("", status_code=201)
async def create_purchase(
    request: PurchaseCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    purchase = await purchase_service.create_purchase(
        db,
        user_id=user.id,
        product_id=request.product_id,
        license_type=request.license_type,
        notes=request.notes,
    )
    await db.commit()
    purchase = await purchase_service.get_purchase(db, purchase_id=purchase.id)
    return success_response(data=dump(PurchaseWithProductOut.model_validate(purchase)))


@router.get("/{purchase_id}")
async def get_purchase(
    purchase_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    purchase = await purchase_service.get_visible_purchase(
        db, purchase_id=purchase_id, viewer_id=user.id, is_admin=user.is_admin
    )
    return success_response(data=dump(PurchaseWithProductOut.model_validate(purchase)))


@router.post("/{purchase_id}/download")
async def download(
    purchase_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    purchase, url = await purchase_service.register_download(db, purchase_id=purchase_id, user_id=user.id)
    await db.commit()
    remaining = None
    if purchase.download_limit is not None:
        remaining = max(0, purchase.download_limit - purchase.download_count)
    return success_response(
        data=dump(
            DownloadOut(
                purchase_id=purchase.id,
                download_url=url,
                download_count=purchase.download_count,
                downloads_remaining=remaining,
            )
        )
    )

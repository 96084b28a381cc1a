"""
Order endpoints.

Clients see and manage their own orders; admins see all of them. Payment
state (isPaid, paidAt, confirmation) is driven by the payment workflow, not
by these endpoints.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_current_user, pagination_params, require_admin
from domain.enums import OrderStatus
from domain.responses import dump, paginated_response, success_response
from models import OrderCreateRequest, OrderUpdateRequest, OrderWithServiceOut
from services import order_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"])


async def _order_payload(db: AsyncSession, order_id: str) -> dict:
    order = await order_service.get_order(db, order_id=order_id)
    return dump(OrderWithServiceOut.model_validate(order))


@router.get("")
async def list_orders(
    status: Optional[OrderStatus] = Query(None),
    service_id: Optional[str] = Query(None, alias="serviceId"),
    user_id: Optional[str] = Query(None, alias="userId", description="Admin only"),
    is_paid: Optional[bool] = Query(None, alias="isPaid"),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    page: Pagination = Depends(pagination_params),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await order_service.list_orders(
        db,
        viewer_id=user.id,
        is_admin=user.is_admin,
        user_id=user_id,
        status=status.value if status else None,
        service_id=service_id,
        is_paid=is_paid,
        assigned_to=assigned_to,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [dump(OrderWithServiceOut.model_validate(o)) for o in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("", status_code=201)
async def create_order(
    request: OrderCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.create_order(
        db,
        user_id=user.id,
        is_admin=user.is_admin,
        **request.model_dump(),
    )
    await db.commit()
    return success_response(data=await _order_payload(db, order.id))


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.get_visible_order(
        db, order_id=order_id, viewer_id=user.id, is_admin=user.is_admin
    )
    return success_response(data=dump(OrderWithServiceOut.model_validate(order)))


@router.put("/{order_id}")
async def update_order(
    order_id: str,
    request: OrderUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await order_service.update_order(
        db,
        order_id=order_id,
        actor_id=user.id,
        is_admin=user.is_admin,
        fields=request.model_dump(exclude_unset=True),
    )
    await db.commit()
    return success_response(data=await _order_payload(db, order_id))


@router.delete("/{order_id}")
async def delete_order(
    order_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await order_service.delete_order(db, order_id=order_id)
    await db.commit()
    logger.info(f"Order {order_id} deleted by {admin.id}")
    return success_response(data={"id": order_id, "deleted": True})

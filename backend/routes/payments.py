"""
Payment record endpoints.

    GET  /payments                       own (admins: all)
    POST /payments                       record a payment made outside checkout
    POST /payments/expire-stale          admin: expire pending payments past expiry
    GET  /payments/{id}                  owner or admin
    PUT  /payments/{id}                  admin edit (status goes through the workflow)
    POST /payments/{id}/notification     gateway notification for one payment
    POST /payments/{id}/refund           admin refund through the gateway
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import CurrentUser, Pagination, get_current_user, pagination_params, require_admin
from domain.enums import PaymentMethod, PaymentStatus
from domain.errors import UnauthorizedError
from domain.responses import dump, paginated_response, success_response
from models import (
    ExpireStaleOut, GatewayNotification, PaymentCreateRequest, PaymentOut,
    PaymentUpdateRequest, RefundRequest, WorkflowResultOut,
)
from services import gateway_service, payment_service, webhook_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/payments", tags=["payments"])


def _result(result) -> dict | None:
    if result is None:
        return None
    return dump(WorkflowResultOut.model_validate(result))


@router.get("")
async def list_payments(
    status: Optional[PaymentStatus] = Query(None),
    order_id: Optional[str] = Query(None, alias="orderId"),
    purchase_id: Optional[str] = Query(None, alias="purchaseId"),
    payment_method: Optional[PaymentMethod] = Query(None, alias="paymentMethod"),
    user_id: Optional[str] = Query(None, alias="userId", description="Admin only"),
    page: Pagination = Depends(pagination_params),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await payment_service.list_payments(
        db,
        viewer_id=user.id,
        is_admin=user.is_admin,
        user_id=user_id,
        status=status.value if status else None,
        order_id=order_id,
        purchase_id=purchase_id,
        payment_method=payment_method.value if payment_method else None,
        limit=page["limit"],
        offset=page["offset"],
    )
    return paginated_response(
        [dump(PaymentOut.model_validate(p)) for p in items],
        limit=page["limit"],
        offset=page["offset"],
        total=total,
    )


@router.post("", status_code=201)
async def create_payment(
    request: PaymentCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment, result = await payment_service.create_payment_record(
        db, actor_id=user.id, is_admin=user.is_admin, fields=request.model_dump()
    )
    await db.commit()
    return success_response(
        data=dump(PaymentOut.model_validate(payment)),
        meta={"workflow": _result(result)} if result else None,
    )


@router.post("/expire-stale")
async def expire_stale_payments(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    expired = await payment_service.expire_stale(db)
    await db.commit()
    return success_response(data=dump(ExpireStaleOut(expired=len(expired), payment_ids=expired)))


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await payment_service.get_visible_payment(
        db, payment_id=payment_id, viewer_id=user.id, is_admin=user.is_admin
    )
    return success_response(data=dump(PaymentOut.model_validate(payment)))


@router.put("/{payment_id}")
async def update_payment(
    payment_id: str,
    request: PaymentUpdateRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    payment, result = await payment_service.update_payment(
        db, payment_id=payment_id, actor_id=admin.id, fields=request.model_dump(exclude_unset=True)
    )
    await db.commit()
    return success_response(
        data=dump(PaymentOut.model_validate(payment)),
        meta={"workflow": _result(result)} if result else None,
    )


@router.post("/{payment_id}/notification")
async def payment_notification(
    payment_id: str,
    notification: GatewayNotification,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Gateway notification addressed to a single payment. Signature required."""
    body = notification.model_dump()
    if not gateway_service.verify_signature(body):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected unsigned/invalid notification for payment {payment_id} from {client_ip}")
        raise UnauthorizedError("Invalid notification signature")

    payment = await payment_service.get_payment(db, payment_id=payment_id)
    result = await webhook_service.handle_notification(db, body, payment=payment)
    await db.commit()
    return success_response(data=_result(result))


@router.post("/{payment_id}/refund")
async def refund_payment(
    payment_id: str,
    request: RefundRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await payment_service.refund_payment(
        db, payment_id=payment_id, actor_id=admin.id, amount=request.amount, reason=request.reason
    )
    await db.commit()
    payment = await payment_service.get_payment(db, payment_id=payment_id)
    return success_response(
        data=dump(PaymentOut.model_validate(payment)),
        meta={"workflow": _result(result)},
    )

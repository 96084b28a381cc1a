"""
Payment gateway endpoints.

    POST /payment/service                    open checkout for an order
    POST /payment/product                    open checkout for a purchase
    POST /payment/webhook                    gateway HTTP notification (signed)
    GET  /payment/callback                   browser return from the gateway
    POST /payment/simulate/{transactionId}   simulation mode only

In SIMULATION_MODE the gateway is mocked (see services/gateway_service.py):
the callback treats status_code 200 as settlement and anything else as a
failure, and /simulate posts a correctly built notification through the same
workflow the webhook uses. Outside simulation mode the callback is read-only
and only signed webhooks change payment state.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from deps import CurrentUser, get_current_user
from domain.errors import PermissionDeniedError, UnauthorizedError, ValidationError
from domain.responses import dump, success_response
from middleware.rate_limit import rate_limit
from models import (
    CheckoutOut, CheckoutProductRequest, CheckoutServiceRequest, GatewayNotification,
    PaymentOut, SimulatePaymentRequest, WorkflowResultOut,
)
from services import gateway_service, payment_service, webhook_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payment", tags=["payment-gateway"])


def _checkout_payload(payment, tx) -> dict:
    return dump(
        CheckoutOut(
            payment=PaymentOut.model_validate(payment),
            redirect_url=tx.redirect_url,
            token=tx.token,
        )
    )


# ════════════════════════════════════════════════════════════════════
# Checkout
# ════════════════════════════════════════════════════════════════════


@router.post("/service", status_code=201)
async def checkout_service_order(
    request: CheckoutServiceRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment, tx = await payment_service.checkout_order(
        db, order_id=request.order_id, user_id=user.id, is_admin=user.is_admin
    )
    await db.commit()
    return success_response(data=_checkout_payload(payment, tx))


@router.post("/product", status_code=201)
async def checkout_product_purchase(
    request: CheckoutProductRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment, tx = await payment_service.checkout_purchase(
        db, purchase_id=request.purchase_id, user_id=user.id, is_admin=user.is_admin
    )
    await db.commit()
    return success_response(data=_checkout_payload(payment, tx))


# ════════════════════════════════════════════════════════════════════
# Gateway notifications
# ════════════════════════════════════════════════════════════════════


@router.post("/webhook")
async def gateway_webhook(
    notification: GatewayNotification,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Gateway HTTP notification.

    Always verifies signature_key (fails closed without a server key).
    Stale or duplicate notifications are acknowledged with applied=false so
    the gateway stops retrying them.
    """
    body = notification.model_dump()
    if not gateway_service.verify_signature(body):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected gateway notification for {notification.transaction_id} from {client_ip}")
        raise UnauthorizedError("Invalid notification signature")

    result = await webhook_service.handle_notification(db, body)
    await db.commit()
    return success_response(data=dump(WorkflowResultOut.model_validate(result)))


@router.get("/callback")
async def gateway_callback(
    transaction_id: Optional[str] = Query(None),
    status_code: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Landing endpoint the gateway redirects the buyer's browser to."""
    if not transaction_id:
        raise ValidationError("transaction_id is required", field="transaction_id")

    payment = await webhook_service.get_payment_by_transaction(db, transaction_id)
    result = None
    if settings.simulation_mode and status_code is not None:
        outcome = "settlement" if status_code == "200" else "failure"
        result = await webhook_service.simulate_notification(db, payment, transaction_status=outcome)
        await db.commit()

    return success_response(
        data={
            "payment": dump(PaymentOut.model_validate(payment)),
            "success": payment.status == "settlement",
            "workflow": dump(WorkflowResultOut.model_validate(result)) if result else None,
        }
    )


# ════════════════════════════════════════════════════════════════════
# SIMULATION ENDPOINT
# ════════════════════════════════════════════════════════════════════


@router.post("/simulate/{transaction_id}")
async def simulate_gateway_notification(
    transaction_id: str,
    request: SimulatePaymentRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=30, window_seconds=60)),
):
    """
    Pretend the gateway reported `transactionStatus` for a payment.

    Owner or admin only; disabled unless SIMULATION_MODE is on and never
    available in production.
    """
    if not settings.simulation_mode or settings.environment == "production":
        raise PermissionDeniedError("Payment simulation is disabled")

    payment = await webhook_service.get_payment_by_transaction(db, transaction_id)
    if not user.is_admin and payment.user_id != user.id:
        raise PermissionDeniedError("You can only simulate your own payments")

    result = await webhook_service.simulate_notification(
        db,
        payment,
        transaction_status=request.transaction_status,
        fraud_status=request.fraud_status,
        payment_type=request.payment_type,
    )
    await db.commit()
    logger.info(f"[simulated] {transaction_id} -> {request.transaction_status} by {user.id}")
    return success_response(data=dump(WorkflowResultOut.model_validate(result)))

"""
Payment service — payment records, checkout and refunds.

Status changes are never written here directly; they go through
webhook_service.apply_status() so orders and purchases stay in step.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Payment, Order, Purchase, User
from domain.constants import ORDER_UNPAYABLE_STATUSES, PAYMENT_SUCCESS_STATUSES
from domain.enums import PaymentMethod, PaymentStatus
from domain.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from services import gateway_service, order_service, purchase_service, webhook_service
from services.webhook_service import WorkflowResult
from utils.clock import utcnow
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


async def list_payments(
    db: AsyncSession,
    *,
    viewer_id: str,
    is_admin: bool,
    user_id: str | None = None,
    status: str | None = None,
    order_id: str | None = None,
    purchase_id: str | None = None,
    payment_method: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Payment], int]:
    stmt = select(Payment)
    if not is_admin:
        stmt = stmt.where(Payment.user_id == viewer_id)
    elif user_id:
        stmt = stmt.where(Payment.user_id == user_id)
    if status:
        stmt = stmt.where(Payment.status == status)
    if order_id:
        stmt = stmt.where(Payment.order_id == order_id)
    if purchase_id:
        stmt = stmt.where(Payment.purchase_id == purchase_id)
    if payment_method:
        stmt = stmt.where(Payment.payment_method == payment_method)
    stmt = stmt.order_by(Payment.created_at.desc())
    return await fetch_page(db, stmt, limit=limit, offset=offset)


async def get_payment(db: AsyncSession, *, payment_id: str) -> Payment:
    payment = await db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment", payment_id)
    return payment


async def get_visible_payment(db: AsyncSession, *, payment_id: str, viewer_id: str, is_admin: bool) -> Payment:
    payment = await get_payment(db, payment_id=payment_id)
    if not is_admin and payment.user_id != viewer_id:
        raise NotFoundError("Payment", payment_id)
    return payment


async def _check_target(
    db: AsyncSession,
    *,
    order_id: str | None,
    purchase_id: str | None,
    user_id: str,
    is_admin: bool,
) -> str:
    """Validate the order/purchase a payment points at; returns the owner's user id."""
    if order_id and purchase_id:
        raise ValidationError("A payment can reference an order or a purchase, not both")
    if order_id:
        order = await db.get(Order, order_id)
        if not order or (not is_admin and order.user_id != user_id):
            raise ValidationError(f"Unknown order {order_id}", field="orderId")
        return order.user_id
    if purchase_id:
        purchase = await db.get(Purchase, purchase_id)
        if not purchase or (not is_admin and purchase.user_id != user_id):
            raise ValidationError(f"Unknown purchase {purchase_id}", field="purchaseId")
        return purchase.user_id
    return user_id


async def create_payment_record(
    db: AsyncSession,
    *,
    actor_id: str,
    is_admin: bool,
    fields: dict,
) -> tuple[Payment, WorkflowResult | None]:
    """
    Record a payment made outside the checkout flow.

    Clients may only record pending payments. Admin records with any other
    status are created pending and moved through the workflow so the linked
    order or purchase is updated too.
    """
    fields = dict(fields)
    status = fields.pop("status", PaymentStatus.PENDING.value)
    if not is_admin and status != PaymentStatus.PENDING.value:
        raise PermissionDeniedError("Only admins can record settled or failed payments")

    owner_id = await _check_target(
        db,
        order_id=fields.get("order_id"),
        purchase_id=fields.get("purchase_id"),
        user_id=actor_id,
        is_admin=is_admin,
    )

    res = await db.execute(select(Payment.id).where(Payment.transaction_id == fields["transaction_id"]))
    if res.first():
        raise ConflictError(f"Payment with transaction id {fields['transaction_id']} already exists")

    payment = Payment(
        user_id=owner_id,
        status=PaymentStatus.PENDING.value,
        processed_by=actor_id if is_admin else None,
        **fields,
    )
    db.add(payment)
    await db.flush()
    logger.info(f"Payment record {payment.id} created by {actor_id} ({payment.transaction_id})")

    result = None
    if status != PaymentStatus.PENDING.value:
        result = await webhook_service.apply_status(
            db, payment, status=status, fraud_status=fields.get("fraud_status"), actor_id=actor_id
        )
    return payment, result


async def update_payment(
    db: AsyncSession,
    *,
    payment_id: str,
    actor_id: str,
    fields: dict,
) -> tuple[Payment, WorkflowResult | None]:
    """Admin edit. Non-status fields are written as-is; a status change runs the workflow."""
    payment = await get_payment(db, payment_id=payment_id)
    fields = dict(fields)
    status = fields.pop("status", None)
    fraud_status = fields.pop("fraud_status", None)

    for key, value in fields.items():
        setattr(payment, key, value)
    payment.processed_by = actor_id
    payment.updated_at = utcnow()
    await db.flush()

    result = None
    if status is not None or fraud_status is not None:
        result = await webhook_service.apply_status(
            db,
            payment,
            status=status or payment.status,
            fraud_status=fraud_status,
            actor_id=actor_id,
            reason=f"Manual update by {actor_id}",
        )
    return payment, result


# ════════════════════════════════════════════════════════════════════
# Checkout
# ════════════════════════════════════════════════════════════════════


async def _customer(db: AsyncSession, user_id: str) -> dict:
    user = await db.get(User, user_id)
    return {"email": user.email, "first_name": user.name} if user else {}


async def _open_payment(
    db: AsyncSession,
    *,
    user_id: str,
    amount: Decimal,
    currency: str,
    prefix: str,
    reference_id: str,
    item_name: str,
    order_id: str | None = None,
    purchase_id: str | None = None,
) -> tuple[Payment, gateway_service.GatewayTransaction]:
    tx = await gateway_service.create_transaction(
        order_id=gateway_service.gateway_order_id(prefix, reference_id),
        amount=amount,
        currency=currency,
        customer=await _customer(db, user_id),
        item_name=item_name,
    )
    payment = Payment(
        user_id=user_id,
        order_id=order_id,
        purchase_id=purchase_id,
        transaction_id=tx.transaction_id,
        payment_method=PaymentMethod.CREDIT_CARD.value,
        amount=amount,
        currency=currency,
        status=PaymentStatus.PENDING.value,
        gateway_response=tx.to_dict(),
        payment_url=tx.redirect_url,
        expiry_time=utcnow() + timedelta(hours=settings.payment_expiry_hours),
    )
    db.add(payment)
    await db.flush()
    logger.info(f"Checkout opened: payment {payment.id} tx={tx.transaction_id} {tx.gross_amount} {currency}")
    return payment, tx


async def checkout_order(
    db: AsyncSession,
    *,
    order_id: str,
    user_id: str,
    is_admin: bool,
) -> tuple[Payment, gateway_service.GatewayTransaction]:
    order = await order_service.get_visible_order(db, order_id=order_id, viewer_id=user_id, is_admin=is_admin)
    if order.is_paid:
        raise ConflictError("Order is already paid")
    if order.status in ORDER_UNPAYABLE_STATUSES:
        raise ConflictError(f"Order cannot be paid in status {order.status}")

    return await _open_payment(
        db,
        user_id=order.user_id,
        amount=order.amount,
        currency=order.currency,
        prefix="ORD",
        reference_id=order.id,
        item_name=order.title,
        order_id=order.id,
    )


async def checkout_purchase(
    db: AsyncSession,
    *,
    purchase_id: str,
    user_id: str,
    is_admin: bool,
) -> tuple[Payment, gateway_service.GatewayTransaction]:
    purchase = await purchase_service.get_visible_purchase(
        db, purchase_id=purchase_id, viewer_id=user_id, is_admin=is_admin
    )
    if purchase.is_paid:
        raise ConflictError("Purchase is already paid")
    if purchase.is_refunded:
        raise ConflictError("Purchase was refunded")

    product = purchase.product
    return await _open_payment(
        db,
        user_id=purchase.user_id,
        amount=product.price,
        currency=product.currency,
        prefix="PUR",
        reference_id=purchase.id,
        item_name=product.title,
        purchase_id=purchase.id,
    )


# ════════════════════════════════════════════════════════════════════
# Refunds and expiry
# ════════════════════════════════════════════════════════════════════


async def refund_payment(
    db: AsyncSession,
    *,
    payment_id: str,
    actor_id: str,
    amount: Decimal | None,
    reason: str,
) -> WorkflowResult:
    payment = await get_payment(db, payment_id=payment_id)
    if payment.status not in PAYMENT_SUCCESS_STATUSES | {PaymentStatus.PARTIAL_REFUND.value}:
        raise ConflictError(f"Payment in status {payment.status} cannot be refunded")

    already = Decimal(payment.refunded_amount or 0)
    remaining = Decimal(payment.amount) - already
    refund_amount = remaining if amount is None else Decimal(amount)
    if refund_amount <= 0 or refund_amount > remaining:
        raise ValidationError(
            f"Refund amount must be between 0 and {remaining}", field="amount"
        )

    gateway_reply = await gateway_service.refund(
        transaction_id=payment.transaction_id, amount=refund_amount, reason=reason
    )
    total = already + refund_amount
    status = PaymentStatus.REFUND.value if total >= Decimal(payment.amount) else PaymentStatus.PARTIAL_REFUND.value

    raw = dict(payment.gateway_response or {})
    raw.setdefault("refunds", [])
    raw["refunds"] = [*raw["refunds"], gateway_reply]
    return await webhook_service.apply_status(
        db,
        payment,
        status=status,
        raw=raw,
        refunded_total=total,
        reason=reason,
        actor_id=actor_id,
    )


async def expire_stale(db: AsyncSession, *, now=None) -> list[str]:
    """Expire pending payments whose expiry_time has passed. Returns their ids."""
    now = now or utcnow()
    res = await db.execute(
        select(Payment).where(
            Payment.status == PaymentStatus.PENDING.value,
            Payment.expiry_time.is_not(None),
            Payment.expiry_time < now,
        )
    )
    expired = []
    for payment in res.scalars().all():
        result = await webhook_service.apply_status(
            db, payment, status=PaymentStatus.EXPIRE.value, reason="Payment window elapsed"
        )
        if result.applied:
            expired.append(payment.id)
    if expired:
        logger.info(f"Expired {len(expired)} stale payment(s)")
    return expired

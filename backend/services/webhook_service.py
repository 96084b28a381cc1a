"""
Payment workflow — applies gateway-reported statuses to Payment, Order and
Purchase records.

Every status change of a payment goes through apply_status(), whether it
comes from the gateway webhook, the browser callback in simulation mode, an
admin edit, a refund or the stale-payment sweep.

    pending         -> any other status
    capture         -> settlement | cancel | deny | refund | partial_refund
    settlement      -> refund | partial_refund
    partial_refund  -> partial_refund | refund
    cancel, expire, fail, deny, refund are terminal

A success (settlement, or capture with fraud_status accept) pays the linked
order or purchase; a failure cancels a still-pending order; a full refund
refunds the linked record. Disallowed transitions are ignored and reported
back with applied=False so the gateway does not retry them forever.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Payment, Order, Purchase
from domain.constants import (
    FRAUD_ACCEPT,
    GATEWAY_PAYMENT_TYPES,
    GATEWAY_STATUS_ALIASES,
    PAYMENT_FAILURE_STATUSES,
    PAYMENT_TRANSITIONS,
)
from domain.enums import FraudStatus, NotificationType, PaymentMethod, PaymentStatus
from domain.errors import NotFoundError, ValidationError
from services import gateway_service, notification_service, order_service, purchase_service
from utils.clock import parse_gateway_time, utcnow

logger = logging.getLogger(__name__)

_KNOWN_STATUSES = {s.value for s in PaymentStatus}
_KNOWN_FRAUD = {f.value for f in FraudStatus}


@dataclass
class WorkflowResult:
    payment_id: str
    transaction_id: str
    previous_status: str
    status: str
    applied: bool
    reason: str | None = None
    order_status: str | None = None
    purchase_paid: bool | None = None


def normalize_status(raw: str) -> str:
    status = (raw or "").strip().lower()
    status = GATEWAY_STATUS_ALIASES.get(status, status)
    if status not in _KNOWN_STATUSES:
        raise ValidationError(f"Unknown transaction status '{raw}'", field="transaction_status")
    return status


def normalize_method(payment_type: str | None) -> str | None:
    if not payment_type:
        return None
    return GATEWAY_PAYMENT_TYPES.get(payment_type.strip().lower(), PaymentMethod.OTHER.value)


def normalize_fraud(raw: str | None) -> str | None:
    if not raw:
        return None
    fraud = raw.strip().lower()
    return fraud if fraud in _KNOWN_FRAUD else None


def is_success(status: str, fraud_status: str | None) -> bool:
    if status == PaymentStatus.SETTLEMENT.value:
        return True
    return status == PaymentStatus.CAPTURE.value and (fraud_status or FRAUD_ACCEPT) == FRAUD_ACCEPT


def can_transition(current: str, new: str) -> bool:
    return new in PAYMENT_TRANSITIONS.get(current, frozenset())


def _to_decimal(value) -> Decimal | None:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


async def _load_targets(db: AsyncSession, payment: Payment) -> tuple[Order | None, Purchase | None]:
    order = await db.get(Order, payment.order_id) if payment.order_id else None
    purchase = await db.get(Purchase, payment.purchase_id) if payment.purchase_id else None
    return order, purchase


async def apply_status(
    db: AsyncSession,
    payment: Payment,
    *,
    status: str,
    fraud_status: str | None = None,
    payment_type: str | None = None,
    raw: dict | None = None,
    settlement_time: str | None = None,
    refunded_total: Decimal | None = None,
    reason: str | None = None,
    actor_id: str | None = None,
) -> WorkflowResult:
    """
    Move `payment` to `status` and propagate the effects.

    `status` must already be normalized. `refunded_total` is the cumulative
    refunded amount after this event (gateway notifications carry it that way).
    """
    previous = payment.status
    fraud = normalize_fraud(fraud_status)
    result = WorkflowResult(
        payment_id=payment.id,
        transaction_id=payment.transaction_id,
        previous_status=previous,
        status=previous,
        applied=False,
    )

    same_status = status == previous
    fraud_changed = fraud is not None and fraud != payment.fraud_status
    refund_changed = (
        refunded_total is not None
        and status == PaymentStatus.PARTIAL_REFUND.value
        and refunded_total != payment.refunded_amount
    )
    if same_status and not fraud_changed and not refund_changed:
        result.reason = "duplicate notification"
        logger.info(f"Payment {payment.id}: {status} already applied, nothing to do")
        return result
    if not same_status and not can_transition(previous, status):
        result.reason = f"ignored transition {previous} -> {status}"
        logger.warning(f"Payment {payment.id}: {result.reason}")
        return result

    now = utcnow()
    payment.status = status
    if fraud is not None:
        payment.fraud_status = fraud
    method = normalize_method(payment_type)
    if method:
        payment.payment_method = method
    if raw is not None:
        payment.gateway_response = raw
        if raw.get("signature_key"):
            payment.signature_key = raw["signature_key"]
    if reason:
        payment.notes = ((payment.notes or "") + f"\n{reason}").strip()
    if actor_id:
        payment.processed_by = actor_id
    payment.updated_at = now

    order, purchase = await _load_targets(db, payment)

    if is_success(status, payment.fraud_status):
        if payment.paid_at is None:
            payment.paid_at = parse_gateway_time(settlement_time) or now
        await _on_success(db, payment, order, purchase)
    elif status in PAYMENT_FAILURE_STATUSES:
        await _on_failure(db, payment, order, purchase)
    elif status == PaymentStatus.REFUND.value:
        payment.refunded_at = now
        payment.refunded_amount = payment.amount
        payment.refunded_reason = reason or payment.refunded_reason
        await _on_refund(db, payment, order, purchase, reason=reason, actor_id=actor_id)
    elif status == PaymentStatus.PARTIAL_REFUND.value:
        payment.refunded_at = now
        if refunded_total is not None:
            payment.refunded_amount = refunded_total
        payment.refunded_reason = reason or payment.refunded_reason
        await _on_partial_refund(db, payment, order, purchase)
    # pending, or capture under fraud review: payment row only

    await db.flush()

    result.status = payment.status
    result.applied = True
    result.order_status = order.status if order else None
    result.purchase_paid = purchase.is_paid if purchase else None
    logger.info(
        f"Payment {payment.id} ({payment.transaction_id}): {previous} -> {payment.status} "
        f"fraud={payment.fraud_status} order={result.order_status} purchase_paid={result.purchase_paid}"
    )
    return result


async def _on_success(db: AsyncSession, payment: Payment, order: Order | None, purchase: Purchase | None) -> None:
    if order and order_service.mark_paid(order, paid_at=payment.paid_at):
        await notification_service.notify(
            db,
            user_id=order.user_id,
            title="Payment received",
            message=f"Payment for order '{order.title}' was confirmed.",
            type=NotificationType.PAYMENT_CONFIRMATION.value,
            priority="high",
            order_id=order.id,
            action_url=f"/orders/{order.id}",
        )
    if purchase and await purchase_service.mark_paid(db, purchase):
        await notification_service.notify(
            db,
            user_id=purchase.user_id,
            title="Purchase complete",
            message="Your payment was confirmed and your download is ready.",
            type=NotificationType.PAYMENT_CONFIRMATION.value,
            priority="high",
            purchase_id=purchase.id,
            action_url=f"/purchases/{purchase.id}",
        )


async def _on_failure(db: AsyncSession, payment: Payment, order: Order | None, purchase: Purchase | None) -> None:
    message = f"Payment {payment.transaction_id} ended with status '{payment.status}'."
    if order:
        cancelled = await order_service.cancel_after_failed_payment(
            db, order, payment_id=payment.id, reason=f"Payment {payment.status}"
        )
        await notification_service.notify(
            db,
            user_id=order.user_id,
            title="Order cancelled" if cancelled else "Payment failed",
            message=message,
            type=NotificationType.ORDER_UPDATE.value,
            order_id=order.id,
            action_url=f"/orders/{order.id}",
        )
    if purchase:
        await notification_service.notify(
            db,
            user_id=purchase.user_id,
            title="Payment failed",
            message=message,
            type=NotificationType.ORDER_UPDATE.value,
            purchase_id=purchase.id,
            action_url=f"/purchases/{purchase.id}",
        )


async def _on_refund(
    db: AsyncSession,
    payment: Payment,
    order: Order | None,
    purchase: Purchase | None,
    *,
    reason: str | None,
    actor_id: str | None,
) -> None:
    if order and order_service.mark_refunded(order):
        await notification_service.notify(
            db,
            user_id=order.user_id,
            title="Order refunded",
            message=f"Order '{order.title}' was refunded.",
            type=NotificationType.ORDER_UPDATE.value,
            order_id=order.id,
        )
    if purchase and purchase_service.mark_refunded(purchase, reason=reason, refunded_by=actor_id):
        await notification_service.notify(
            db,
            user_id=purchase.user_id,
            title="Purchase refunded",
            message="Your purchase was refunded; the license is no longer valid.",
            type=NotificationType.ORDER_UPDATE.value,
            purchase_id=purchase.id,
        )


async def _on_partial_refund(
    db: AsyncSession, payment: Payment, order: Order | None, purchase: Purchase | None
) -> None:
    """Amounts only; the order or purchase itself stays as it is."""
    message = f"{payment.refunded_amount} {payment.currency} of payment {payment.transaction_id} was refunded."
    if order:
        await notification_service.notify(
            db,
            user_id=order.user_id,
            title="Partial refund",
            message=message,
            type=NotificationType.ORDER_UPDATE.value,
            order_id=order.id,
            action_url=f"/orders/{order.id}",
        )
    if purchase:
        await notification_service.notify(
            db,
            user_id=purchase.user_id,
            title="Partial refund",
            message=message,
            type=NotificationType.ORDER_UPDATE.value,
            purchase_id=purchase.id,
            action_url=f"/purchases/{purchase.id}",
        )


# ════════════════════════════════════════════════════════════════════
# Gateway notifications
# ════════════════════════════════════════════════════════════════════


async def get_payment_by_transaction(db: AsyncSession, transaction_id: str) -> Payment:
    res = await db.execute(select(Payment).where(Payment.transaction_id == transaction_id))
    payment = res.scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment", transaction_id)
    return payment


async def handle_notification(db: AsyncSession, notification: dict, *, payment: Payment | None = None) -> WorkflowResult:
    """
    Apply a gateway notification (signature already verified by the caller).

    The notification must match the payment it names: same merchant order id
    and the same gross amount.
    """
    transaction_id = notification.get("transaction_id", "")
    if payment is None:
        payment = await get_payment_by_transaction(db, transaction_id)
    elif transaction_id and transaction_id != payment.transaction_id:
        raise ValidationError("Notification does not belong to this payment", field="transaction_id")

    status = normalize_status(notification.get("transaction_status", ""))

    expected_order_id = (payment.gateway_response or {}).get("order_id")
    if expected_order_id and notification.get("order_id") and notification["order_id"] != expected_order_id:
        raise ValidationError("order_id does not match the payment", field="order_id")

    gross = _to_decimal(notification.get("gross_amount"))
    if gross is not None and gross != Decimal(payment.amount):
        logger.warning(
            f"Gross amount mismatch for {payment.transaction_id}: "
            f"notified {gross}, expected {payment.amount}"
        )
        raise ValidationError("gross_amount does not match the payment", field="gross_amount")

    logger.info(
        f"Gateway notification: tx={payment.transaction_id} status={status} "
        f"fraud={notification.get('fraud_status')}"
    )
    raw = dict(payment.gateway_response or {})
    raw.update(notification)
    return await apply_status(
        db,
        payment,
        status=status,
        fraud_status=notification.get("fraud_status"),
        payment_type=notification.get("payment_type"),
        raw=raw,
        settlement_time=notification.get("settlement_time"),
        refunded_total=_to_decimal(notification.get("refund_amount")),
        reason=notification.get("status_message") if status not in ("settlement", "capture", "pending") else None,
    )


async def simulate_notification(
    db: AsyncSession,
    payment: Payment,
    *,
    transaction_status: str,
    fraud_status: str = "accept",
    payment_type: str = "credit_card",
) -> WorkflowResult:
    """Build the notification the gateway would send and run it through the workflow."""
    notification = gateway_service.build_notification(
        transaction_id=payment.transaction_id,
        order_id=(payment.gateway_response or {}).get("order_id", payment.id),
        gross_amount=gateway_service.format_gross_amount(payment.amount),
        transaction_status=transaction_status,
        fraud_status=fraud_status,
        payment_type=payment_type,
    )
    return await handle_notification(db, notification, payment=payment)

"""
Order service — bookings of services and their status lifecycle.

    pending -> confirmed -> processing <-> in_review -> completed
    pending | confirmed | processing | in_review -> cancelled
    completed | cancelled (paid only) -> refunded

Clients may edit their brief while the order is pending, cancel before work
starts and rate/review once it is completed. Everything else is admin-only.
Payment-driven changes (paid, confirmed, cancelled on failure, refunded) come
from webhook_service and go through the helpers at the bottom.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Order, Payment
from domain.constants import ORDER_CLIENT_CANCELLABLE, ORDER_TRANSITIONS
from domain.enums import OrderStatus, PaymentStatus
from domain.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from services import catalog_service
from utils.clock import utcnow
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)

CLIENT_BRIEF_FIELDS = {"description", "requirements", "attachments"}
CLIENT_FEEDBACK_FIELDS = {"rating", "review"}
ADMIN_ONLY_FIELDS = {"assigned_to", "amount", "estimated_delivery", "notes", "cancellation_fee"}


async def create_order(
    db: AsyncSession,
    *,
    user_id: str,
    is_admin: bool,
    service_id: str,
    title: str | None = None,
    description: str | None = None,
    amount: Decimal | None = None,
    currency: str | None = None,
    requirements: dict | None = None,
    attachments: list[str] | None = None,
    estimated_delivery=None,
    notes: str | None = None,
) -> Order:
    """
    Book a service.

    Title, amount and currency are copied from the service at booking time;
    only admins may override the amount. New orders always start pending and
    unpaid.
    """
    try:
        service = await catalog_service.get_service(db, service_id=service_id, include_private=is_admin)
    except NotFoundError:
        raise ValidationError(f"Unknown service {service_id}", field="serviceId")
    if not service.is_active:
        raise ValidationError("Service is not available for booking", field="serviceId")

    order = Order(
        user_id=user_id,
        service_id=service.id,
        title=title or service.title,
        description=description,
        status=OrderStatus.PENDING.value,
        amount=amount if (is_admin and amount is not None) else service.price,
        currency=currency or service.currency,
        requirements=requirements,
        attachments=list(attachments or []),
        estimated_delivery=estimated_delivery,
        notes=notes if is_admin else None,
        is_paid=False,
        created_by=user_id,
    )
    db.add(order)
    await db.flush()
    logger.info(f"Order created: {order.id} for service {service.id} by {user_id}")
    return order


async def list_orders(
    db: AsyncSession,
    *,
    viewer_id: str,
    is_admin: bool,
    user_id: str | None = None,
    status: str | None = None,
    service_id: str | None = None,
    is_paid: bool | None = None,
    assigned_to: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Order], int]:
    stmt = select(Order)
    if not is_admin:
        stmt = stmt.where(Order.user_id == viewer_id)
    elif user_id:
        stmt = stmt.where(Order.user_id == user_id)
    if status:
        stmt = stmt.where(Order.status == status)
    if service_id:
        stmt = stmt.where(Order.service_id == service_id)
    if is_paid is not None:
        stmt = stmt.where(Order.is_paid == is_paid)
    if assigned_to:
        stmt = stmt.where(Order.assigned_to == assigned_to)
    stmt = stmt.order_by(Order.created_at.desc())
    return await fetch_page(
        db, stmt, limit=limit, offset=offset, options=[selectinload(Order.service)]
    )


async def get_order(db: AsyncSession, *, order_id: str) -> Order:
    res = await db.execute(
        select(Order).options(selectinload(Order.service)).where(Order.id == order_id)
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


async def get_visible_order(db: AsyncSession, *, order_id: str, viewer_id: str, is_admin: bool) -> Order:
    """Orders of other users are reported as missing to non-admins."""
    order = await get_order(db, order_id=order_id)
    if not is_admin and order.user_id != viewer_id:
        raise NotFoundError("Order", order_id)
    return order


def _apply_status(order: Order, new_status: str, *, reason: str | None = None) -> None:
    """Validate and apply a lifecycle transition with its timestamp side effects."""
    current = order.status
    if new_status == current:
        return
    if new_status not in ORDER_TRANSITIONS.get(current, frozenset()):
        raise ConflictError(
            f"Invalid order status transition {current} -> {new_status}",
            details={"from": current, "to": new_status},
        )
    if current == OrderStatus.CANCELLED.value and new_status == OrderStatus.REFUNDED.value and not order.is_paid:
        raise ConflictError("Only paid orders can be refunded")

    now = utcnow()
    order.status = new_status
    if new_status == OrderStatus.PROCESSING.value and order.started_at is None:
        order.started_at = now
    elif new_status == OrderStatus.COMPLETED.value:
        order.completed_at = now
        order.actual_delivery = now
    elif new_status == OrderStatus.CANCELLED.value:
        order.cancelled_at = now
        if reason:
            order.cancelled_reason = reason


async def update_order(
    db: AsyncSession,
    *,
    order_id: str,
    actor_id: str,
    is_admin: bool,
    fields: dict,
) -> Order:
    """Apply a partial update; permissions depend on who is asking and the order's state."""
    order = await get_order(db, order_id=order_id)
    if not is_admin and order.user_id != actor_id:
        raise PermissionDeniedError("You can only update your own orders")

    fields = dict(fields)
    new_status = fields.pop("status", None)
    reason = fields.pop("cancelled_reason", None)

    if not is_admin:
        forbidden = set(fields) & ADMIN_ONLY_FIELDS
        if forbidden:
            raise PermissionDeniedError(
                f"Only admins can change: {', '.join(sorted(forbidden))}"
            )
        if set(fields) & CLIENT_BRIEF_FIELDS and order.status != OrderStatus.PENDING.value:
            raise ConflictError("Order details can only be edited while the order is pending")
        if set(fields) & CLIENT_FEEDBACK_FIELDS and order.status != OrderStatus.COMPLETED.value:
            raise ConflictError("Orders can only be rated once completed")
        if new_status is not None and new_status != order.status:
            if new_status != OrderStatus.CANCELLED.value:
                raise PermissionDeniedError("Clients can only cancel orders")
            if order.status not in ORDER_CLIENT_CANCELLABLE:
                raise ConflictError(f"Order can no longer be cancelled (status {order.status})")

    if "amount" in fields and order.is_paid:
        raise ConflictError("Amount cannot change after the order is paid")

    for key, value in fields.items():
        setattr(order, key, value)
    if new_status is not None:
        _apply_status(order, new_status, reason=reason)
    elif reason is not None and order.status == OrderStatus.CANCELLED.value:
        order.cancelled_reason = reason

    order.updated_at = utcnow()
    await db.flush()
    logger.info(f"Order {order.id} updated by {actor_id} (status={order.status})")
    return order


async def delete_order(db: AsyncSession, *, order_id: str) -> None:
    order = await get_order(db, order_id=order_id)
    res = await db.execute(select(Payment).where(Payment.order_id == order_id))
    for payment in res.scalars().all():
        payment.order_id = None
        payment.notes = ((payment.notes or "") + f"\nOrder {order_id} deleted").strip()
    await db.delete(order)
    await db.flush()


# ════════════════════════════════════════════════════════════════════
# Payment-driven transitions
# ════════════════════════════════════════════════════════════════════


def mark_paid(order: Order, *, paid_at) -> bool:
    """
    Record a successful payment. Idempotent: a paid order is left alone.

    Returns True if the order changed.
    """
    if order.is_paid:
        return False
    order.is_paid = True
    order.paid_at = paid_at
    if order.status == OrderStatus.PENDING.value:
        _apply_status(order, OrderStatus.CONFIRMED.value)
    order.updated_at = utcnow()
    return True


async def cancel_after_failed_payment(db: AsyncSession, order: Order, *, payment_id: str, reason: str) -> bool:
    """
    Cancel an unpaid pending order whose payment failed.

    Left alone when another payment for the same order is still pending, so a
    retried checkout is not cancelled by the expiry of an earlier attempt.
    """
    if order.is_paid or order.status != OrderStatus.PENDING.value:
        return False

    res = await db.execute(
        select(Payment.id).where(
            Payment.order_id == order.id,
            Payment.id != payment_id,
            Payment.status == PaymentStatus.PENDING.value,
        )
    )
    if res.first():
        logger.info(f"Order {order.id} kept pending: another payment is still open")
        return False

    _apply_status(order, OrderStatus.CANCELLED.value, reason=reason)
    order.updated_at = utcnow()
    return True


def mark_refunded(order: Order) -> bool:
    """Gateway-confirmed refund; applies from any state of a paid order."""
    if order.status == OrderStatus.REFUNDED.value or not order.is_paid:
        return False
    now = utcnow()
    if order.status not in (OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value):
        order.cancelled_at = now
        order.cancelled_reason = order.cancelled_reason or "Payment refunded"
    order.status = OrderStatus.REFUNDED.value
    order.updated_at = now
    return True
